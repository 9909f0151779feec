#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from .diagnostics import (
    ErrorKind,
    VerificationError,
    ShapeMismatch,
    LayoutUnknown,
    DegenerateLayout,
    NonUnitInnerStride,
    Verdict,
    Diagnostic,
    DiagnosticEngine,
)
from .broadcast import (
    broadcast_shapes,
    verify_broadcastable_shape,
    check_broadcastable_shape,
    verify_broadcastable_operands,
    check_broadcastable_operands,
)
from .strides import (
    get_strides_and_offset,
    verify_unit_stride_inner_loop,
    check_unit_stride_inner_loop,
)
from .traits import verify_node, verify_graph
