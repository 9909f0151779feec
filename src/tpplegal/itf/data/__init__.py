#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from .tensor import Tensor, TensorType, ShapeType, DataType, DimType
