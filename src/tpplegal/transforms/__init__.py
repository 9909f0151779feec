#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from .pattern import RewritePattern, NoRewriteApplicable, InvariantViolation
from .padding import padded_extent, zero_value, one_value, PadRequest, pad_dimension
from .gemm import (
    TilingConstraints,
    DEFAULT_TILING,
    GemmOperands,
    PaddingPlan,
    LegalizeResult,
    GemmLegalizer,
)
from .driver import (
    populate_enforce_patterns,
    apply_patterns_greedily,
    enforce_preconditions,
)
