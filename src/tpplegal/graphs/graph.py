#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from typing_extensions import override
from collections.abc import Sequence, Mapping
from typing import Any, cast
import logging
import threading

from tpplegal.itf.graph import Graph
from tpplegal.itf.data import Tensor

from .node import TNode
from .utils import TGraphUtils
from .data import TTensor
from .operators import TOperator, TOperInput, ValueType

__all__ = [
    "GraphError",
    "TGraph",
]

logger = logging.getLogger(__name__)


class GraphError(Exception):
    """Raised on invalid graph queries or mutations."""


class TGraph(Graph):
    """Arena graph of immutable nodes.

    Each slot holds a node value or None once the node is erased. Node
    ids are slot indices and are never reused. Replacing a value redirects
    the operand ids of its users to the new value under the graph lock, so
    that concurrent readers observe either the graph before or after the
    substitution.
    """

    def __init__(self, name: str | None = None) -> None:
        self._slots: list[TNode | None] = []
        self._types: list[ValueType | None] = []
        self._inputs: list[int] = []
        self._outputs: list[int] = []
        self._name = name
        self._lock = threading.Lock()

    @property
    @override
    def name(self) -> str:
        return "" if self._name is None else self._name

    @property
    @override
    def nodes(self) -> Mapping[int, TNode]:
        with self._lock:
            return {node.uid: node for node in self._slots if node is not None}

    @property
    @override
    def inputs(self) -> Sequence[int]:
        return list(self._inputs)

    @property
    @override
    def outputs(self) -> Sequence[int]:
        return list(self._outputs)

    @override
    def node(self, uid: int) -> TNode:
        if uid < 0 or uid >= len(self._slots) or self._slots[uid] is None:
            raise GraphError(f"no live node %{uid} in graph {self.name!r}")
        return cast(TNode, self._slots[uid])

    @override
    def type_of(self, uid: int) -> Any:
        self.node(uid)
        return self._types[uid]

    def operands_types(self, uid: int) -> list[Any]:
        return [self.type_of(operand) for operand in self.node(uid).operands]

    def add_input(self, type: ValueType, name: str | None = None) -> int:
        uid = self.append(TOperInput(type), (), name=name)
        self._inputs.append(uid)
        return uid

    def append(
        self,
        operator: TOperator,
        operands: Sequence[int],
        name: str | None = None,
    ) -> int:
        operands_types = [self.type_of(operand) for operand in operands]
        types = operator.forward_types(operands_types)
        assert len(types) == 1, (
            f"expected a single result for {operator.name}, got {len(types)}"
        )
        with self._lock:
            uid = len(self._slots)
            self._slots.append(TNode(uid, operator, operands, name))
            self._types.append(types[0])
        logger.debug("append %%%d = %s : %s", uid, self._slots[uid], types[0])
        return uid

    def set_outputs(self, outputs: Sequence[int]) -> None:
        for uid in outputs:
            self.node(uid)
        self._outputs = list(outputs)

    def replace_all_uses(self, old: int, new: int, erase: bool = False) -> None:
        """Redirects all uses of old to new, and erases old if requested.

        Users and outputs are redirected under the graph lock, together
        with the erasure.
        """
        self.node(old)
        self.node(new)
        assert self._types[old] == self._types[new], (
            f"replacement type mismatch: {self._types[old]} != {self._types[new]}"
        )
        with self._lock:
            self._redirect(old, new)
            if erase:
                self._slots[old] = None
                self._types[old] = None

    def replace_op(self, old: int, new: int) -> None:
        """Replaces all uses of old by new and erases old, atomically."""
        self.replace_all_uses(old, new, erase=True)
        logger.debug("replaced %%%d by %%%d", old, new)

    def _redirect(self, old: int, new: int) -> None:
        for idx, node in enumerate(self._slots):
            if node is None or idx == new or not node.uses(old):
                continue
            self._slots[idx] = node.with_operands(
                [new if operand == old else operand for operand in node.operands]
            )
        self._outputs = [new if uid == old else uid for uid in self._outputs]

    @override
    def forward(self, inputs: Sequence[Tensor]) -> Sequence[TTensor]:
        assert len(inputs) == len(self._inputs), (
            f"forward inputs size mismatch: {len(inputs)} != {len(self._inputs)}"
        )
        nodes = TGraphUtils.get_nodes_topological_from_seed(self.nodes, self._outputs)
        outputs_map = {
            uid: cast(TTensor, inp) for uid, inp in zip(self._inputs, inputs)
        }
        for node in nodes:
            if node.uid in outputs_map:
                continue
            inps = [outputs_map[operand] for operand in node.operands]
            outputs_map[node.uid] = node.operator.forward(inps)[0]
        return [outputs_map[uid] for uid in self._outputs]

    @override
    def __str__(self) -> str:
        nodes = TGraphUtils.get_nodes_topological(self.nodes)
        graph_str = "graph:\n"
        if self.name != "":
            graph_str += f"  name: {self._name}\n"
        if len(self._inputs) > 0:
            graph_str += "  inputs:\n"
            for uid in self._inputs:
                graph_str += f"  - %{uid} : {self._types[uid]}\n"
        else:
            graph_str += "  inputs: []\n"
        if len(self._outputs) > 0:
            graph_str += "  outputs:\n"
            for uid in self._outputs:
                graph_str += f"  - %{uid} : {self._types[uid]}\n"
        else:
            graph_str += "  outputs: []\n"
        body = [node for node in nodes if node.uid not in self._inputs]
        if len(body) > 0:
            graph_str += "  nodes:\n"
            for node in body:
                operands_types = ", ".join(
                    [str(self._types[operand]) for operand in node.operands]
                )
                graph_str += (
                    f"  - %{node.uid}: {node} : [{operands_types}]"
                    f" -> [{self._types[node.uid]}]\n"
                )
        else:
            graph_str += "  nodes: {}\n"
        return graph_str
