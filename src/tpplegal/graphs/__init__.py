#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from .data import (
    DYNAMIC,
    is_dynamic,
    is_shaped,
    TTensorType,
    TTensor,
    MemRefType,
    ScalarType,
    VectorType,
    StridedLayout,
    AffineLayout,
)
from .graph import TGraph, GraphError
from .builder import TGraphRewriter
from . import op
