#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from abc import ABC, abstractmethod
from typing import Any, TypeAlias
import numpy.typing

DimType: TypeAlias = int | None
ShapeType: TypeAlias = tuple[DimType, ...] | None
DataType: TypeAlias = Any


class TensorType(ABC):
    """An abstract descriptor of a multi-dimensional value.

    A TensorType is an immutable pair of an ordered sequence of dimension
    extents and an element type. An extent is either a non-negative int
    or the dynamic marker. The shape is None for unranked descriptors.
    """

    @property
    @abstractmethod
    def shape(self) -> ShapeType:
        """Returns the dimension extents or None when unranked.

        Returns:
            The tuple of extents
        """
        ...

    @property
    @abstractmethod
    def dtype(self) -> DataType:
        """Returns the element type.

        Returns:
            The element type
        """
        ...

    @property
    @abstractmethod
    def ndim(self) -> int:
        """Returns the rank, 0 when unranked.

        Returns:
            The number of dimensions
        """
        ...


class Tensor(ABC):
    """An abstract tensor value, a TensorType with attached data."""

    @property
    @abstractmethod
    def type(self) -> TensorType:
        """Returns the descriptor of this tensor.

        Returns:
            The tensor type
        """
        ...

    @property
    @abstractmethod
    def data(self) -> Any | None:
        """Returns the underlying data if any.

        Returns:
            The data or None
        """
        ...

    @abstractmethod
    def numpy(self) -> numpy.typing.NDArray:
        """Returns a numpy copy of the data.

        Returns:
            The numpy array
        """
        ...
