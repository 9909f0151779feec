#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Sequence
from typing import Any

from .builder import TGraphBuilder, TGraphContext
from .data import TTensorType, MemRefType, ElementType, ShapeType
from .operators import (
    TOperConstant,
    TOperGeneric,
    TOperPad,
    TOperExtractSlice,
    TOperTppAdd,
    TOperTppIdentity,
    TOperTppRelu,
    Region,
    ValueType,
    MATMUL_LIBRARY_CALL,
)

__all__ = [
    "graph",
    "input",
    "tensor",
    "memref",
    "constant",
    "generic",
    "matmul",
    "pad",
    "extract_slice",
    "add",
    "identity",
    "relu",
    "outputs",
]

MATMUL_DIMS = ("i", "j", "k")
MATMUL_ITERATORS = ("parallel", "parallel", "reduction")
MATMUL_MAPS = (("i", "k"), ("k", "j"), ("i", "j"))


def graph(name: str | None = None) -> TGraphBuilder:
    return TGraphBuilder(name=name)


def input(type: ValueType, name: str | None = None) -> int:
    return TGraphContext.current().add_input(type, name=name)


def tensor(shape: ShapeType, dtype: ElementType, name: str | None = None) -> int:
    return input(TTensorType(shape=shape, dtype=dtype), name=name)


def memref(
    shape: ShapeType, dtype: ElementType, name: str | None = None, **attrs: Any
) -> int:
    return input(MemRefType(shape=shape, dtype=dtype, **attrs), name=name)


def constant(value: Any, dtype: ElementType, name: str | None = None) -> int:
    return TGraphContext.current().append(
        TOperConstant(value, dtype), (), name=name
    )


def generic(
    ins: Sequence[int],
    out: int,
    dims: Sequence[str],
    iterator_types: Sequence[str],
    indexing_maps: Sequence[Sequence[str]],
    region: Region | None = None,
    library_call: str = "",
    name: str | None = None,
) -> int:
    return TGraphContext.current().append(
        TOperGeneric(
            dims=dims,
            iterator_types=iterator_types,
            indexing_maps=indexing_maps,
            region=region,
            library_call=library_call,
        ),
        (*ins, out),
        name=name,
    )


def matmul(a: int, b: int, c: int, name: str | None = None) -> int:
    """C += A x B as a generic tagged with the tpp.matmul library call."""
    return generic(
        (a, b),
        c,
        dims=MATMUL_DIMS,
        iterator_types=MATMUL_ITERATORS,
        indexing_maps=MATMUL_MAPS,
        library_call=MATMUL_LIBRARY_CALL,
        name=name,
    )


def pad(inp: int, fill: int, shape: Sequence[int], name: str | None = None) -> int:
    return TGraphContext.current().append(TOperPad(shape), (inp, fill), name=name)


def extract_slice(
    inp: int,
    offsets: Sequence[int],
    sizes: Sequence[int],
    strides: Sequence[int] | None = None,
    name: str | None = None,
) -> int:
    if strides is None:
        strides = [1] * len(sizes)
    return TGraphContext.current().append(
        TOperExtractSlice(offsets, sizes, strides), (inp,), name=name
    )


def add(a: int, b: int, out: int, name: str | None = None) -> int:
    return TGraphContext.current().append(TOperTppAdd(), (a, b, out), name=name)


def identity(inp: int, out: int, name: str | None = None) -> int:
    return TGraphContext.current().append(TOperTppIdentity(), (inp, out), name=name)


def relu(inp: int, out: int, name: str | None = None) -> int:
    return TGraphContext.current().append(TOperTppRelu(), (inp, out), name=name)


def outputs(*outs: int) -> None:
    TGraphContext.current().set_outputs(outs)
