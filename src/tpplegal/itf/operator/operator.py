#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from abc import ABC, abstractmethod
from collections.abc import Sequence
from ..data import TensorType, Tensor


class Operator(ABC):
    """An abstract operator, the semantic kind of a graph Node.

    An Operator defines how output types are inferred from operand types
    and how outputs are computed from operand tensors. Operators are
    identified by their name, which plays the role of the operation tag.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Returns the operator name.

        Returns:
            The name identifying the operator kind
        """
        ...

    @property
    @abstractmethod
    def traits(self) -> frozenset[str]:
        """Returns the verification traits attached to this operator.

        Returns:
            The set of trait names
        """
        ...

    @abstractmethod
    def forward_types(self, inputs_types: Sequence[TensorType]) -> Sequence[TensorType]:
        """Infers output types from operand types.

        Args:
            inputs_types: List of operand types

        Returns:
            List of inferred output types
        """
        ...

    @abstractmethod
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[Tensor]:
        """Evaluates the operator on operand tensors.

        Args:
            inputs: List of operand tensors

        Returns:
            List of output tensors
        """
        ...
