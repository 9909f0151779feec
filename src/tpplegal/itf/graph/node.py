#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from abc import ABC, abstractmethod
from collections.abc import Sequence
from ..operator.operator import Operator


class Node(ABC):
    """An abstract representation of a node in a dataflow graph.

    A Node is an immutable value: an Operator applied to operand values.
    Each node produces exactly one result, hence a value id is the same
    as the producing node id. Operands are referenced by id into the
    owning graph arena, never by object, so that substituting a value
    only requires redirecting ids.
    """

    @property
    @abstractmethod
    def uid(self) -> int:
        """Returns the id of this node in its graph arena.

        Returns:
            The node id
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Returns the name of this node. Can be non-unique or empty.

        Returns:
            The node's name
        """
        ...

    @property
    @abstractmethod
    def operands(self) -> Sequence[int]:
        """Returns the ordered operand value ids of this node.

        Returns:
            List of operand ids
        """
        ...

    @property
    @abstractmethod
    def operator(self) -> Operator:
        """Returns the operator that defines this node's behavior.

        Returns:
            The operator associated with this node
        """
        ...
