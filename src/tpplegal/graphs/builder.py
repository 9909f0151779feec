#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Sequence
from typing import Any
import threading

from .data import TTensorType, ElementType
from .graph import TGraph
from .operators import (
    TOperator,
    TOperConstant,
    TOperPad,
    TOperExtractSlice,
    ValueType,
)

__all__ = [
    "TGraphBuilder",
    "TGraphContext",
    "TGraphRewriter",
]


class TGraphBuilder:
    """Context manager building a graph with the op factory functions."""

    def __init__(self, name: str | None = None) -> None:
        self._graph = TGraph(name=name)

    @property
    def graph(self) -> TGraph:
        return self._graph

    def __enter__(self) -> "TGraphBuilder":
        TGraphContext.push(self)
        return self

    def __exit__(self, *args: Any) -> None:
        TGraphContext.pop(self)


class TGraphContext:
    _local = threading.local()

    @classmethod
    def _stack(cls) -> list[TGraphBuilder]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @classmethod
    def push(cls, builder: TGraphBuilder) -> None:
        cls._stack().append(builder)

    @classmethod
    def pop(cls, builder: TGraphBuilder) -> None:
        stack = cls._stack()
        assert stack and stack[-1] is builder, "unbalanced graph contexts"
        stack.pop()

    @classmethod
    def current(cls) -> TGraph:
        stack = cls._stack()
        assert stack, "no graph context, use `with op.graph():`"
        return stack[-1].graph


class TGraphRewriter:
    """Creates nodes in a graph and substitutes values on behalf of patterns.

    Created nodes are unreachable from the graph outputs until replace_op()
    redirects the uses of the replaced value, hence a rewrite becomes
    visible in a single step.
    """

    def __init__(self, graph: TGraph) -> None:
        self._graph = graph
        self._created: list[int] = []

    @property
    def graph(self) -> TGraph:
        return self._graph

    @property
    def created(self) -> list[int]:
        return list(self._created)

    def create(
        self,
        operator: TOperator,
        operands: Sequence[int],
        name: str | None = None,
    ) -> int:
        uid = self._graph.append(operator, operands, name=name)
        self._created.append(uid)
        return uid

    def create_constant(self, value: Any, dtype: ElementType) -> int:
        return self.create(TOperConstant(value, dtype), ())

    def create_pad_high(
        self,
        type: TTensorType,
        source: int,
        fill: int,
        name: str | None = None,
    ) -> int:
        return self.create(TOperPad(type.constant_shape), (source, fill), name=name)

    def create_extract_slice(
        self,
        source: int,
        offsets: Sequence[int],
        sizes: Sequence[int],
        strides: Sequence[int],
        name: str | None = None,
    ) -> int:
        return self.create(
            TOperExtractSlice(offsets, sizes, strides), (source,), name=name
        )

    def type_of(self, uid: int) -> ValueType:
        return self._graph.type_of(uid)

    def replace_op(self, old: int, new: int) -> None:
        self._graph.replace_op(old, new)

