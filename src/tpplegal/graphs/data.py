#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from typing_extensions import override
from typing import cast, Any, TypeAlias
import numpy as np
import numpy.typing

from tpplegal.itf.data import (
    Tensor,
    TensorType,
    ShapeType,
    DimType,
)


__all__ = [
    "DYNAMIC",
    "is_dynamic",
    "VectorType",
    "ElementType",
    "ScalarType",
    "TTensorType",
    "StridedLayout",
    "AffineLayout",
    "MemRefType",
    "TTensor",
    "is_shaped",
    "np_dtype",
]


# Marker for an unknown extent.
DYNAMIC: DimType = None


def is_dynamic(dim: DimType) -> bool:
    return dim is None


def _shape_str(shape: ShapeType) -> str:
    if shape is None:
        return "*"
    return "x".join(["?" if is_dynamic(d) else str(d) for d in shape])


class VectorType:
    """Aggregate element type, a fixed shape of scalars."""

    def __init__(self, shape: tuple[int, ...], dtype: str) -> None:
        assert all([isinstance(d, int) and d > 0 for d in shape]), (
            f"vector shape must be static and non-empty: {shape}"
        )
        self._shape = tuple(shape)
        self._dtype = dtype

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> str:
        return self._dtype

    @override
    def __repr__(self) -> str:
        return f"vector<{_shape_str(self._shape)}x{self._dtype}>"

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VectorType):
            return NotImplemented
        return self.shape == other.shape and self.dtype == other.dtype

    @override
    def __hash__(self) -> int:
        return hash(("vector", self._shape, self._dtype))


ElementType: TypeAlias = str | VectorType


def np_dtype(elt: ElementType) -> np.dtype:
    """Returns the numpy scalar dtype for an element type."""
    if isinstance(elt, VectorType):
        return np_dtype(elt.dtype)
    if elt == "index":
        return np.dtype("int64")
    return np.dtype(elt)


class ScalarType:
    """A non-shaped value type."""

    def __init__(self, dtype: ElementType) -> None:
        self._dtype = dtype

    @property
    def dtype(self) -> ElementType:
        return self._dtype

    @override
    def __repr__(self) -> str:
        return str(self._dtype)

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScalarType):
            return NotImplemented
        return self.dtype == other.dtype

    @override
    def __hash__(self) -> int:
        return hash(("scalar", self._dtype))


class TTensorType(TensorType):
    """Tensor descriptor with value semantics."""

    kind = "tensor"

    def __init__(self, shape: ShapeType = None, dtype: ElementType | None = None):
        self._shape = None if shape is None else tuple(shape)
        self._dtype = dtype

    @property
    @override
    def shape(self) -> ShapeType:
        return self._shape

    @property
    @override
    def dtype(self) -> ElementType | None:
        return self._dtype

    @property
    @override
    def ndim(self) -> int:
        return 0 if self._shape is None else len(self._shape)

    def is_constant_shape(self) -> bool:
        return self._shape is not None and all(
            [isinstance(dim, int) for dim in self._shape]
        )

    @property
    def constant_shape(self) -> tuple[int, ...]:
        assert self._shape is not None and self.is_constant_shape(), (
            f"shape is not static: {self}"
        )
        return (*[cast(int, dim) for dim in self._shape],)

    def with_shape(self, shape: tuple[int, ...]) -> "TTensorType":
        """Returns a new descriptor of the same kind with the given shape."""
        return TTensorType(shape=shape, dtype=self._dtype)

    def np_shape(self) -> tuple[int, ...]:
        """Returns the numpy shape of values, including vector elements."""
        shape = self.constant_shape
        if isinstance(self._dtype, VectorType):
            shape = (*shape, *self._dtype.shape)
        return shape

    @override
    def __repr__(self) -> str:
        dtype = self._dtype if self._dtype else "?"
        if self._shape is not None and len(self._shape) == 0:
            return f"{dtype}"
        return f"{_shape_str(self._shape)}x{dtype}"

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TTensorType):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.dtype == other.dtype
            and self.shape == other.shape
        )

    @override
    def __hash__(self) -> int:
        return hash((self.kind, self._shape, self._dtype))


class StridedLayout:
    """Explicit per-dimension strides and base offset, in elements."""

    def __init__(self, strides: tuple[DimType, ...], offset: DimType = 0) -> None:
        self._strides = tuple(strides)
        self._offset = offset

    @property
    def strides(self) -> tuple[DimType, ...]:
        return self._strides

    @property
    def offset(self) -> DimType:
        return self._offset

    @override
    def __repr__(self) -> str:
        strides = ", ".join(["?" if is_dynamic(s) else str(s) for s in self._strides])
        offset = "?" if is_dynamic(self._offset) else self._offset
        return f"strided<[{strides}], offset: {offset}>"

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StridedLayout):
            return NotImplemented
        return self.strides == other.strides and self.offset == other.offset

    @override
    def __hash__(self) -> int:
        return hash(("strided", self._strides, self._offset))


class AffineLayout:
    """Opaque index map layout, strides are not computable from it."""

    def __init__(self, expr: str) -> None:
        self._expr = expr

    @property
    def expr(self) -> str:
        return self._expr

    @override
    def __repr__(self) -> str:
        return f"affine<{self._expr}>"

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineLayout):
            return NotImplemented
        return self.expr == other.expr

    @override
    def __hash__(self) -> int:
        return hash(("affine", self._expr))


LayoutType: TypeAlias = StridedLayout | AffineLayout | None


class MemRefType(TTensorType):
    """Buffer descriptor with an explicit memory layout.

    A None layout is the identity, row-major contiguous, layout.
    """

    kind = "memref"

    def __init__(
        self,
        shape: ShapeType = None,
        dtype: ElementType | None = None,
        layout: LayoutType = None,
    ):
        super().__init__(shape=shape, dtype=dtype)
        if isinstance(layout, StridedLayout) and shape is not None:
            assert len(layout.strides) == len(shape), (
                f"strided layout rank mismatch: {layout} for shape {shape}"
            )
        self._layout = layout

    @property
    def layout(self) -> LayoutType:
        return self._layout

    @override
    def with_shape(self, shape: tuple[int, ...]) -> "MemRefType":
        return MemRefType(shape=shape, dtype=self._dtype)

    @override
    def __repr__(self) -> str:
        base = f"memref<{super().__repr__()}"
        if self._layout is not None:
            base += f", {self._layout}"
        return base + ">"

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemRefType):
            return NotImplemented
        return super().__eq__(other) and self.layout == other.layout

    @override
    def __hash__(self) -> int:
        return hash((self.kind, self._shape, self._dtype, self._layout))


def is_shaped(type: Any) -> bool:
    return isinstance(type, TTensorType)


class TTensor(Tensor):
    def __init__(
        self, data: Any | None = None, type: TTensorType | None = None
    ) -> None:
        self._data = np.array(data) if data is not None else None
        if type is not None:
            self._type = type
        elif self._data is not None:
            self._type = TTensorType(self._data.shape, str(self._data.dtype))
        else:
            self._type = TTensorType()

    @property
    @override
    def type(self) -> TTensorType:
        return self._type

    @property
    @override
    def data(self) -> Any | None:
        return self._data

    @override
    def numpy(self) -> numpy.typing.NDArray:
        assert self._data is not None
        return np.array(self._data)

    @override
    def __repr__(self) -> str:
        if self._data is None:
            return f"Tensor(type={self._type}, data=None)"
        else:
            data = self._data.reshape((-1,))
            if len(data) > 8:
                data_str = f"{' '.join([str(d) for d in data[:4]])}...{' '.join([str(d) for d in data[-4:]])}"
            else:
                data_str = f"{' '.join([str(d) for d in data])}"
            return f"Tensor(type={self._type}, data={data_str})"
