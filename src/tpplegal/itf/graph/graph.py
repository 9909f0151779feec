#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from abc import ABC, abstractmethod
from collections.abc import Sequence, Mapping
from .node import Node
from ..data import TensorType, Tensor


class Graph(ABC):
    """An abstract representation of a dataflow graph over Tensor types.

    A Graph is a directed acyclic graph (DAG) over Node objects with input
    values and output values. From given input types, all node result types
    can be inferred, and the graph can be evaluated by interpretation.

    Nodes in the graph are keyed by their id in the graph arena.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Returns the name of this graph. May be non-unique or empty.

        Returns:
            The graph's name
        """
        ...

    @property
    @abstractmethod
    def nodes(self) -> Mapping[int, Node]:
        """Returns all live nodes in the graph, keyed by node id.

        Returns:
            Dictionary mapping node ids to Node objects
        """
        ...

    @property
    @abstractmethod
    def inputs(self) -> Sequence[int]:
        """Returns the list of input value ids for this graph.

        Returns:
            List of input ids
        """
        ...

    @property
    @abstractmethod
    def outputs(self) -> Sequence[int]:
        """Returns the list of output value ids for the graph.

        Returns:
            List of output ids
        """
        ...

    @abstractmethod
    def node(self, uid: int) -> Node:
        """Returns the live node with the given id.

        Args:
            uid: the node id

        Returns:
            The node
        """
        ...

    @abstractmethod
    def type_of(self, uid: int) -> TensorType:
        """Returns the result type of the given value.

        Args:
            uid: the value id

        Returns:
            The value type
        """
        ...

    @abstractmethod
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[Tensor]:
        """Evaluate the graph with input tensors to produce output tensors.

        Args:
            inputs: List of input tensors

        Returns:
            List of output tensors
        """
        ...
