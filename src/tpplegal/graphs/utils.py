#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Sequence, Mapping

from .node import TNode

__all__ = [
    "TGraphUtils",
]


class TGraphUtils:
    @staticmethod
    def get_nodes_topological(nodes: Mapping[int, TNode]) -> list[TNode]:
        """
        Returns the nodes ordered such that a node appears after all its
        operands. Ties are broken by uid, hence a graph built in order is
        returned in construction order.
        """
        pending = {uid: len(set(node.operands)) for uid, node in nodes.items()}
        users: dict[int, list[int]] = {uid: [] for uid in nodes}
        for uid, node in nodes.items():
            for operand in set(node.operands):
                assert operand in nodes, f"operand %{operand} of %{uid} not in graph"
                users[operand].append(uid)
        ready = sorted([uid for uid, count in pending.items() if count == 0])
        ordered = []
        while ready:
            uid = ready.pop(0)
            ordered.append(nodes[uid])
            for user in users[uid]:
                pending[user] -= 1
                if pending[user] == 0:
                    ready.append(user)
            ready.sort()
        assert len(ordered) == len(nodes), "cycle detected in graph"
        return ordered

    @staticmethod
    def get_nodes_topological_from_seed(
        nodes: Mapping[int, TNode], seeds: Sequence[int]
    ) -> list[TNode]:
        """
        Returns in topological order the nodes reachable backward from the
        given seed ids.
        """
        reachable: set[int] = set()
        worklist = list(seeds)
        while worklist:
            uid = worklist.pop()
            if uid in reachable:
                continue
            reachable.add(uid)
            worklist.extend(nodes[uid].operands)
        return TGraphUtils.get_nodes_topological(
            {uid: node for uid, node in nodes.items() if uid in reachable}
        )
