#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Callable
from typing import Any, TypeAlias
import logging

from tpplegal.graphs.graph import TGraph
from tpplegal.graphs.operators import BROADCASTABLE_SHAPE, UNIT_STRIDE_INNER_LOOP

from .broadcast import verify_broadcastable_operands
from .strides import verify_unit_stride_inner_loop
from .diagnostics import Verdict, DiagnosticEngine

__all__ = [
    "TRAIT_VERIFIERS",
    "verify_node",
    "verify_graph",
]

logger = logging.getLogger(__name__)

TraitVerifier: TypeAlias = Callable[..., Verdict]

TRAIT_VERIFIERS: dict[str, TraitVerifier] = {
    BROADCASTABLE_SHAPE: verify_broadcastable_operands,
    UNIT_STRIDE_INNER_LOOP: verify_unit_stride_inner_loop,
}


def verify_node(
    graph: TGraph, uid: int, diagnostics: DiagnosticEngine | None = None
) -> Verdict:
    """Runs the verifiers of the node operator traits, stops at first failure."""
    node = graph.node(uid)
    operands_types: list[Any] = graph.operands_types(uid)
    location = f"%{uid} {node.operator.name}"
    for trait in sorted(node.operator.traits):
        verdict = TRAIT_VERIFIERS[trait](
            operands_types, diagnostics=diagnostics, location=location
        )
        if not verdict.ok:
            return verdict
    return Verdict.success()


def verify_graph(graph: TGraph, diagnostics: DiagnosticEngine | None = None) -> bool:
    """Verifies all nodes of the graph, returns True if all succeed."""
    failures = 0
    for uid in sorted(graph.nodes):
        if not verify_node(graph, uid, diagnostics=diagnostics).ok:
            failures += 1
    logger.debug("verified graph %r: %d failures", graph.name, failures)
    return failures == 0
