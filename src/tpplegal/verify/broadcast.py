#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
"""
Broadcast compatibility of operand shapes.

Shapes are aligned on their trailing, fastest varying, dimension. Two
dimensions are compatible when equal, when one of them is 1 or when one
of them is dynamic. The inputs are folded into a single broadcasted shape
which must then be compatible with the trailing dimensions of the output.
"""
from collections.abc import Sequence
from typing import Any
import logging

from tpplegal.graphs.data import DYNAMIC, is_dynamic, is_shaped
from tpplegal.itf.data import DimType

from .diagnostics import Verdict, ErrorKind, DiagnosticEngine

__all__ = [
    "get_shape",
    "broadcast_shapes",
    "is_compatible_inferred_shape",
    "verify_broadcastable_shape",
    "check_broadcastable_shape",
    "verify_broadcastable_operands",
    "check_broadcastable_operands",
]

logger = logging.getLogger(__name__)

Shape = tuple[DimType, ...]


def get_shape(type: Any) -> Shape:
    """Returns the shape of a ranked shaped type, () otherwise."""
    if is_shaped(type) and type.shape is not None:
        return tuple(type.shape)
    return ()


def _broadcast_dim(dim1: DimType, dim2: DimType) -> tuple[bool, DimType]:
    if dim1 == dim2:
        return True, dim1
    if is_dynamic(dim1):
        return True, DYNAMIC if dim2 == 1 else dim2
    if is_dynamic(dim2):
        return True, DYNAMIC if dim1 == 1 else dim1
    if dim1 == 1:
        return True, dim2
    if dim2 == 1:
        return True, dim1
    return False, DYNAMIC


def broadcast_shapes(lhs: Sequence[DimType], rhs: Sequence[DimType]) -> Shape | None:
    """
    Returns the broadcasted shape of lhs and rhs or None if incompatible.
    For instance:
    broadcast_shapes((3, 1), (1, 4)) -> (3, 4)
    broadcast_shapes((4,), (2, 1)) -> (2, 4)
    broadcast_shapes((?, 4), (3, 1)) -> (3, 4)
    broadcast_shapes((3, 2), (1, 4)) -> None
    """
    rank = max(len(lhs), len(rhs))
    result: list[DimType] = []
    for pos in range(1, rank + 1):
        dim1 = lhs[-pos] if pos <= len(lhs) else 1
        dim2 = rhs[-pos] if pos <= len(rhs) else 1
        ok, dim = _broadcast_dim(dim1, dim2)
        if not ok:
            return None
        result.append(dim)
    return tuple(reversed(result))


def is_compatible_inferred_shape(
    inferred: Sequence[DimType], existing: Sequence[DimType]
) -> bool:
    # An inferred 1 may be widened by the existing dim, but an existing 1
    # can not hold a wider inferred dim.
    if len(inferred) != len(existing):
        return False
    for dim1, dim2 in zip(inferred, existing):
        if not (dim1 == dim2 or is_dynamic(dim1) or is_dynamic(dim2) or dim1 == 1):
            return False
    return True


def _shape_str(shape: Sequence[DimType]) -> str:
    return "(" + ", ".join(["?" if is_dynamic(d) else str(d) for d in shape]) + ")"


def verify_broadcastable_shape(
    inputs_types: Sequence[Any],
    output_type: Any,
    diagnostics: DiagnosticEngine | None = None,
    location: str = "",
) -> Verdict:
    """Verifies that the inputs and the output shapes are broadcast compatible.

    Inputs are folded pairwise, the first incompatible input is reported.
    The output is checked against the folded shape on its trailing dims.
    When diagnostics is given, a failure is emitted to it.

    Args:
        inputs_types: the input operand types, in operand order
        output_type: the output operand type
        diagnostics: the diagnostic engine, or None for a silent check
        location: the location reported with the diagnostic

    Returns:
        The verdict of the check
    """
    verdict = _verify_broadcastable_shape(inputs_types, output_type)
    if not verdict.ok:
        logger.debug("broadcast check failed: %s", verdict.message)
        if diagnostics is not None:
            diagnostics.emit_verdict(verdict, location=location)
    return verdict


def _verify_broadcastable_shape(
    inputs_types: Sequence[Any], output_type: Any
) -> Verdict:
    if len(inputs_types) == 0:
        return Verdict.success()

    result: Shape | None = get_shape(inputs_types[0])
    for idx, other in enumerate(inputs_types[1:], start=1):
        folded = broadcast_shapes(result, get_shape(other))
        if folded is None:
            return Verdict.failure(
                ErrorKind.SHAPE_MISMATCH,
                "operands don't have broadcast-compatible shapes: "
                f"operand {idx} {_shape_str(get_shape(other))} "
                f"vs {_shape_str(result)}",
                operand=idx,
            )
        result = folded

    output_shape = get_shape(output_type)
    suffix = output_shape[max(0, len(output_shape) - len(result)) :]
    if not is_compatible_inferred_shape(result, suffix):
        return Verdict.failure(
            ErrorKind.SHAPE_MISMATCH,
            "result type not broadcast compatible with broadcasted operands's "
            f"shapes: {_shape_str(output_shape)} vs {_shape_str(result)}",
            operand=len(inputs_types),
        )
    return Verdict.success()


def check_broadcastable_shape(
    inputs_types: Sequence[Any], output_type: Any
) -> bool:
    return verify_broadcastable_shape(inputs_types, output_type).ok


def verify_broadcastable_operands(
    operands_types: Sequence[Any],
    diagnostics: DiagnosticEngine | None = None,
    location: str = "",
) -> Verdict:
    """Same as verify_broadcastable_shape, the last operand is the output."""
    if len(operands_types) == 0:
        return Verdict.success()
    return verify_broadcastable_shape(
        operands_types[:-1],
        operands_types[-1],
        diagnostics=diagnostics,
        location=location,
    )


def check_broadcastable_operands(operands_types: Sequence[Any]) -> bool:
    return verify_broadcastable_operands(operands_types).ok
