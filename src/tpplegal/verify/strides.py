#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Sequence
from typing import Any
import logging

from tpplegal.graphs.data import (
    DYNAMIC,
    is_dynamic,
    is_shaped,
    MemRefType,
    StridedLayout,
)
from tpplegal.itf.data import DimType

from .diagnostics import Verdict, ErrorKind, DiagnosticEngine

__all__ = [
    "get_strides_and_offset",
    "verify_unit_stride_inner_loop",
    "check_unit_stride_inner_loop",
]

logger = logging.getLogger(__name__)


def _identity_strides(shape: Sequence[DimType]) -> tuple[DimType, ...]:
    strides: list[DimType] = []
    running: DimType = 1
    for dim in reversed(shape):
        strides.append(running)
        if is_dynamic(dim) or is_dynamic(running):
            running = DYNAMIC
        else:
            running = running * dim
    return tuple(reversed(strides))


def get_strides_and_offset(type: Any) -> tuple[tuple[DimType, ...], DimType] | None:
    """
    Returns the (strides, offset) layout of a shaped type, in elements,
    or None when it can not be computed: unranked type or non strided
    layout. Tensors and memrefs without layout use the row-major identity.
    For instance:
    tensor<4x8xf32> -> ((8, 1), 0)
    memref<4x?x8xf32> -> ((?, 8, 1), 0)
    memref<4x8xf32, strided<[16, 2], offset: 3>> -> ((16, 2), 3)
    """
    assert is_shaped(type), f"strides of non shaped type: {type}"
    if type.shape is None:
        return None
    layout = type.layout if isinstance(type, MemRefType) else None
    if layout is None:
        return _identity_strides(type.shape), 0
    if isinstance(layout, StridedLayout):
        return layout.strides, layout.offset
    return None


def verify_unit_stride_inner_loop(
    operands_types: Sequence[Any],
    diagnostics: DiagnosticEngine | None = None,
    location: str = "",
) -> Verdict:
    """Verifies that all shaped operands have a unit innermost stride.

    Operands are checked in order and the first failure is reported.
    A non shaped operand imposes no constraint and ends the check
    with success.

    Args:
        operands_types: the operand types
        diagnostics: the diagnostic engine, or None for a silent check
        location: the location reported with the diagnostic

    Returns:
        The verdict of the check
    """
    verdict = _verify_unit_stride_inner_loop(operands_types)
    if not verdict.ok:
        logger.debug("stride check failed: %s", verdict.message)
        if diagnostics is not None:
            diagnostics.emit_verdict(verdict, location=location)
    return verdict


def _verify_unit_stride_inner_loop(operands_types: Sequence[Any]) -> Verdict:
    for idx, operand_type in enumerate(operands_types):
        if not is_shaped(operand_type):
            return Verdict.success()
        layout = get_strides_and_offset(operand_type)
        if layout is None:
            return Verdict.failure(
                ErrorKind.LAYOUT_UNKNOWN,
                f"failed to compute strides for operand {idx}",
                operand=idx,
            )
        strides, _ = layout
        if len(strides) == 0:
            return Verdict.failure(
                ErrorKind.DEGENERATE_LAYOUT,
                f"no innermost varying dimension for rank-0 operand {idx}",
                operand=idx,
            )
        if strides[-1] != 1:
            return Verdict.failure(
                ErrorKind.NON_UNIT_INNER_STRIDE,
                "non-unit stride in the innermost varying dimension "
                f"for operand {idx}",
                operand=idx,
            )
    return Verdict.success()


def check_unit_stride_inner_loop(operands_types: Sequence[Any]) -> bool:
    return verify_unit_stride_inner_loop(operands_types).ok
