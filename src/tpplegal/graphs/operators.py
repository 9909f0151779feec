#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from typing_extensions import override
from typing import TypeAlias, cast, Any
from types import SimpleNamespace as NS
from collections.abc import Sequence
import numpy as np

from tpplegal.itf.operator import Operator
from tpplegal.itf.data import Tensor

from .data import (
    TTensor,
    TTensorType,
    ScalarType,
    ElementType,
    VectorType,
    np_dtype,
)

__all__ = [
    "TOperator",
    "TOperInput",
    "TOperConstant",
    "Region",
    "TOperGeneric",
    "TOperPad",
    "TOperExtractSlice",
    "TOperTppAdd",
    "TOperTppIdentity",
    "TOperTppRelu",
    "BROADCASTABLE_SHAPE",
    "UNIT_STRIDE_INNER_LOOP",
    "MATMUL_LIBRARY_CALL",
]


TOperatorAttr: TypeAlias = Any
TOperatorAttrs: TypeAlias = NS
ValueType: TypeAlias = TTensorType | ScalarType

BROADCASTABLE_SHAPE = "broadcastable_shape"
UNIT_STRIDE_INNER_LOOP = "unit_stride_inner_loop"
MATMUL_LIBRARY_CALL = "tpp.matmul"


class TOperator(Operator):
    def __init__(
        self,
        name: str,
        traits: Sequence[str] = (),
        **attrs: TOperatorAttr,
    ) -> None:
        self._name = name
        self._traits = frozenset(traits)
        self._attrs = NS(**attrs)

    @property
    @override
    def name(self) -> str:
        return self._name

    @property
    @override
    def traits(self) -> frozenset[str]:
        return self._traits

    @property
    def attrs(self) -> TOperatorAttrs:
        return self._attrs

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        return [cast(ValueType, inp_type) for inp_type in inputs_types]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        return [cast(TTensor, inp) for inp in inputs]

    def attrs_str(self) -> list[str]:
        return [f"{attr}={value}" for attr, value in self.attrs.__dict__.items()]


class TOperInput(TOperator):
    """Graph argument, its type is given at construction."""

    def __init__(self, type: ValueType) -> None:
        super().__init__("input")
        self._type = type

    @property
    def type(self) -> ValueType:
        return self._type

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        assert len(inputs_types) == 0
        return [self._type]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        raise RuntimeError("graph inputs are bound by the graph, not evaluated")


class TOperConstant(TOperator):
    """Scalar constant, or splat of a scalar for aggregate element types."""

    def __init__(self, value: Any, dtype: ElementType) -> None:
        super().__init__("constant", value=value)
        self._type = ScalarType(dtype)

    @property
    def value(self) -> Any:
        return self.attrs.value

    @property
    def type(self) -> ScalarType:
        return self._type

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        assert len(inputs_types) == 0
        return [self._type]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        assert len(inputs) == 0
        dtype = self._type.dtype
        value = np.asarray(self.value, dtype=np_dtype(dtype))
        if isinstance(dtype, VectorType):
            value = np.broadcast_to(value, dtype.shape).copy()
        return [TTensor(value)]

    @override
    def attrs_str(self) -> list[str]:
        return [f"value={self.value}", f"dtype={self._type.dtype}"]


_UFUNCS = {
    "add": np.add,
    "sub": np.subtract,
    "mul": np.multiply,
    "max": np.maximum,
    "min": np.minimum,
}


class Region:
    """Body of a generic operation.

    The body combines the inputs elements with `combiner`, reduces over
    the reduction dimensions with `reducer` and accumulates into the
    output with `reducer`, e.g. ("mul", "add") for a matmul body.
    """

    def __init__(self, combiner: str = "mul", reducer: str = "add") -> None:
        assert combiner in _UFUNCS, f"unsupported region combiner: {combiner}"
        assert reducer in _UFUNCS, f"unsupported region reducer: {reducer}"
        self._combiner = combiner
        self._reducer = reducer

    @property
    def combiner(self) -> str:
        return self._combiner

    @property
    def reducer(self) -> str:
        return self._reducer

    @override
    def __repr__(self) -> str:
        return f"{{{self._combiner}, {self._reducer}}}"

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Region):
            return NotImplemented
        return self.combiner == other.combiner and self.reducer == other.reducer

    @override
    def __hash__(self) -> int:
        return hash((self._combiner, self._reducer))


def _to_iteration_space(
    array: np.ndarray, imap: Sequence[str], dims: Sequence[str]
) -> np.ndarray:
    # Transpose to the iteration order, then insert unit dims for the
    # dimensions the operand does not index.
    order = sorted(range(len(imap)), key=lambda axis: dims.index(imap[axis]))
    transposed = array.transpose(order)
    sizes = dict(zip(imap, array.shape))
    return transposed.reshape([sizes.get(dim, 1) for dim in dims])


class TOperGeneric(TOperator):
    """Structured operation over destination-style operands.

    The last operand is the output (accumulator), the others are inputs.
    The `library_call` attribute is the tag identifying the computation
    kind, for instance MATMUL_LIBRARY_CALL.
    """

    def __init__(
        self,
        dims: Sequence[str],
        iterator_types: Sequence[str],
        indexing_maps: Sequence[Sequence[str]],
        region: Region | None = None,
        library_call: str = "",
    ) -> None:
        assert len(dims) == len(iterator_types)
        assert all([it in ("parallel", "reduction") for it in iterator_types]), (
            f"unexpected iterator types: {iterator_types}"
        )
        for imap in indexing_maps:
            assert all([dim in dims for dim in imap]), (
                f"indexing map {imap} not in dims {dims}"
            )
        super().__init__(
            "generic",
            dims=tuple(dims),
            iterator_types=tuple(iterator_types),
            indexing_maps=tuple([tuple(imap) for imap in indexing_maps]),
            region=Region() if region is None else region,
            library_call=library_call,
        )

    @property
    def library_call(self) -> str:
        return self.attrs.library_call

    @property
    def region(self) -> Region:
        return self.attrs.region

    @property
    def indexing_maps(self) -> tuple[tuple[str, ...], ...]:
        return self.attrs.indexing_maps

    @property
    def iterator_types(self) -> tuple[str, ...]:
        return self.attrs.iterator_types

    @property
    def dims(self) -> tuple[str, ...]:
        return self.attrs.dims

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        assert len(inputs_types) == len(self.indexing_maps), (
            f"operands / indexing maps mismatch: {len(inputs_types)} != {len(self.indexing_maps)}"
        )
        for inp_type, imap in zip(inputs_types, self.indexing_maps):
            assert isinstance(inp_type, TTensorType), (
                f"generic operand is not shaped: {inp_type}"
            )
            assert inp_type.ndim == len(imap), (
                f"operand rank mismatch with indexing map: {inp_type} {imap}"
            )
        return [cast(TTensorType, inputs_types[-1])]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        ins, out = inputs[:-1], inputs[-1]
        maps, dims = self.indexing_maps, self.dims
        combiner = _UFUNCS[self.region.combiner]
        reducer = _UFUNCS[self.region.reducer]
        combined = None
        for inp, imap in zip(ins, maps[:-1]):
            expanded = _to_iteration_space(inp.numpy(), imap, dims)
            combined = expanded if combined is None else combiner(combined, expanded)
        out_data = out.numpy()
        if combined is None:
            return [TTensor(out_data, type=cast(TTensorType, out.type))]
        red_axes = tuple(
            [idx for idx, it in enumerate(self.iterator_types) if it == "reduction"]
        )
        if red_axes:
            combined = reducer.reduce(combined, axis=red_axes)
        par_dims = [
            dim
            for dim, it in zip(dims, self.iterator_types)
            if it == "parallel"
        ]
        out_map = maps[-1]
        assert sorted(out_map) == sorted(par_dims), (
            f"output map must be a permutation of parallel dims: {out_map} {par_dims}"
        )
        arranged = combined.transpose([par_dims.index(dim) for dim in out_map])
        result = reducer(out_data, arranged).astype(out_data.dtype)
        return [TTensor(result, type=cast(TTensorType, out.type))]

    @override
    def attrs_str(self) -> list[str]:
        attrs = [
            f"dims={self.dims}",
            f"iterator_types={self.iterator_types}",
            f"indexing_maps={self.indexing_maps}",
            f"region={self.region}",
        ]
        if self.library_call:
            attrs.append(f"library_call={self.library_call!r}")
        return attrs


class TOperPad(TOperator):
    """Pad high to a static shape, operands are (source, fill value)."""

    def __init__(self, shape: Sequence[int]) -> None:
        super().__init__("pad", shape=tuple(shape))

    @property
    def shape(self) -> tuple[int, ...]:
        return self.attrs.shape

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        assert len(inputs_types) == 2
        src_type, fill_type = inputs_types
        assert isinstance(src_type, TTensorType) and src_type.is_constant_shape(), (
            f"pad source must have a static shape: {src_type}"
        )
        assert isinstance(fill_type, ScalarType), (
            f"pad fill value must be a scalar: {fill_type}"
        )
        assert fill_type.dtype == src_type.dtype, (
            f"pad fill type mismatch: {fill_type} != {src_type.dtype}"
        )
        src_shape = src_type.constant_shape
        assert len(src_shape) == len(self.shape), (
            f"pad rank mismatch: {src_shape} to {self.shape}"
        )
        assert all([new >= old for old, new in zip(src_shape, self.shape)]), (
            f"pad can not shrink: {src_shape} to {self.shape}"
        )
        return [TTensorType(shape=self.shape, dtype=src_type.dtype)]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        src, fill = inputs[0].numpy(), inputs[1].numpy()
        src_type = cast(TTensorType, inputs[0].type)
        out_type = TTensorType(shape=self.shape, dtype=src_type.dtype)
        out = np.empty(out_type.np_shape(), dtype=src.dtype)
        out[...] = fill
        out[tuple([slice(0, dim) for dim in src.shape])] = src
        return [TTensor(out, type=out_type)]


class TOperExtractSlice(TOperator):
    """Rank preserving static slice of a tensor."""

    def __init__(
        self,
        offsets: Sequence[int],
        sizes: Sequence[int],
        strides: Sequence[int],
    ) -> None:
        assert len(offsets) == len(sizes) == len(strides)
        super().__init__(
            "extract_slice",
            offsets=tuple(offsets),
            sizes=tuple(sizes),
            strides=tuple(strides),
        )

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        assert len(inputs_types) == 1
        src_type = inputs_types[0]
        assert isinstance(src_type, TTensorType) and src_type.is_constant_shape()
        src_shape = src_type.constant_shape
        assert len(src_shape) == len(self.attrs.sizes)
        for dim, off, size, stride in zip(
            src_shape, self.attrs.offsets, self.attrs.sizes, self.attrs.strides
        ):
            assert stride >= 1 and off >= 0 and size >= 0
            assert off + (size - 1) * stride < dim or size == 0, (
                f"slice out of bounds: {self.attrs} of {src_type}"
            )
        return [TTensorType(shape=self.attrs.sizes, dtype=src_type.dtype)]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        src = inputs[0].numpy()
        index = tuple(
            [
                slice(off, off + size * stride, stride)
                for off, size, stride in zip(
                    self.attrs.offsets, self.attrs.sizes, self.attrs.strides
                )
            ]
        )
        out_type = self.forward_types([inputs[0].type])[0]
        return [TTensor(src[index], type=cast(TTensorType, out_type))]


class TOperTpp(TOperator):
    """TPP operation in destination style, the last operand is the output."""

    def __init__(self, name: str) -> None:
        super().__init__(name, traits=(BROADCASTABLE_SHAPE, UNIT_STRIDE_INNER_LOOP))

    @override
    def forward_types(self, inputs_types: Sequence[Any]) -> Sequence[ValueType]:
        assert len(inputs_types) >= 1
        out_type = inputs_types[-1]
        assert isinstance(out_type, TTensorType)
        return [out_type]

    def _compute(self, ins: Sequence[np.ndarray]) -> np.ndarray:
        raise NotImplementedError

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        out = inputs[-1]
        out_data = out.numpy()
        result = self._compute([inp.numpy() for inp in inputs[:-1]])
        result = np.broadcast_to(result, out_data.shape).astype(out_data.dtype)
        return [TTensor(result, type=cast(TTensorType, out.type))]


class TOperTppAdd(TOperTpp):
    def __init__(self) -> None:
        super().__init__("tpp.add")

    @override
    def _compute(self, ins: Sequence[np.ndarray]) -> np.ndarray:
        assert len(ins) == 2
        return np.add(ins[0], ins[1])


class TOperTppIdentity(TOperTpp):
    def __init__(self) -> None:
        super().__init__("tpp.identity")

    @override
    def _compute(self, ins: Sequence[np.ndarray]) -> np.ndarray:
        assert len(ins) == 1
        return ins[0]


class TOperTppRelu(TOperTpp):
    def __init__(self) -> None:
        super().__init__("tpp.relu")

    @override
    def _compute(self, ins: Sequence[np.ndarray]) -> np.ndarray:
        assert len(ins) == 1
        return np.maximum(ins[0], 0)
