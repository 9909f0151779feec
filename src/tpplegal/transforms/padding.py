#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
import logging
import numpy as np

from tpplegal.graphs.builder import TGraphRewriter
from tpplegal.graphs.data import TTensorType, ElementType, VectorType, np_dtype

__all__ = [
    "padded_extent",
    "zero_value",
    "one_value",
    "PadRequest",
    "pad_dimension",
]

logger = logging.getLogger(__name__)


def padded_extent(current: int, multiple: int) -> int:
    """
    Returns the smallest multiple of `multiple` greater or equal to current.
    For instance:
    padded_extent(10, 16) = 16
    padded_extent(16, 16) = 16
    padded_extent(17, 16) = 32
    padded_extent(10, 6) = 12
    """
    assert multiple >= 1, f"tile multiple must be positive: {multiple}"
    assert current >= 0, f"extent must be non-negative: {current}"
    return multiple * -(-current // multiple)


def _splat(elt: ElementType, scalar: int) -> Any:
    if isinstance(elt, VectorType):
        return np.full(elt.shape, _splat(elt.dtype, scalar), dtype=np_dtype(elt))
    dtype = np_dtype(elt)
    if dtype.kind not in "fciub":
        raise ValueError(f"no constant {scalar} for element type: {elt}")
    return dtype.type(scalar)


def zero_value(elt: ElementType) -> Any:
    """Returns the 0 constant of an element type, splat for vector types."""
    return _splat(elt, 0)


def one_value(elt: ElementType) -> Any:
    """Returns the 1 constant of an element type, splat for vector types."""
    return _splat(elt, 1)


@dataclass(frozen=True)
class PadRequest:
    """An operand sharing the padded dimension on the given axis."""

    role: str
    value: int
    axis: int
    fill: Any


def pad_dimension(
    rewriter: TGraphRewriter,
    current: int,
    multiple: int,
    requests: Sequence[PadRequest],
) -> dict[str, int] | None:
    """Pads one dimension shared by several operands to a tile multiple.

    For each request a fill constant and a pad-high node are created and
    the padded value replaces the operand. The fill value is taken as is
    from the request.

    Args:
        rewriter: the rewriter used to create nodes
        current: the current extent of the dimension
        multiple: the required multiple
        requests: the operands sharing the dimension

    Returns:
        The padded values keyed by role, or None if already aligned
    """
    if current % multiple == 0:
        return None
    padded = padded_extent(current, multiple)
    logger.debug("pad dimension %d to %d (multiple of %d)", current, padded, multiple)
    values = {}
    for request in requests:
        type = rewriter.type_of(request.value)
        assert isinstance(type, TTensorType) and type.is_constant_shape()
        shape = list(type.constant_shape)
        assert shape[request.axis] == current, (
            f"operand {request.role} dim {request.axis} mismatch: "
            f"{shape[request.axis]} != {current}"
        )
        shape[request.axis] = padded
        fill = rewriter.create_constant(request.fill, type.dtype)
        values[request.role] = rewriter.create_pad_high(
            type.with_shape(tuple(shape)),
            request.value,
            fill,
            name=f"{request.role}_pad",
        )
    return values
