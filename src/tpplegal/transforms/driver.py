#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from collections.abc import Sequence
import logging

from tpplegal.graphs.builder import TGraphRewriter
from tpplegal.graphs.graph import TGraph

from .pattern import RewritePattern, NoRewriteApplicable
from .gemm import GemmLegalizer, TilingConstraints, DEFAULT_TILING

__all__ = [
    "populate_enforce_patterns",
    "apply_patterns_greedily",
    "enforce_preconditions",
]

logger = logging.getLogger(__name__)


def populate_enforce_patterns(
    tiling: TilingConstraints = DEFAULT_TILING,
) -> list[RewritePattern]:
    """Returns the patterns enforcing the TPP kernels preconditions."""
    return [GemmLegalizer(tiling)]


def apply_patterns_greedily(
    graph: TGraph,
    patterns: Sequence[RewritePattern],
    max_iterations: int = 10,
) -> int:
    """
    Applies the patterns on the graph nodes until no pattern applies.
    Each iteration visits the nodes live at its start in id order, the
    first matching pattern rewrites a node. Nodes created by a rewrite
    are visited on the next iteration.

    Returns:
        The number of applied rewrites
    """
    assert max_iterations >= 1
    rewrites = 0
    for iteration in range(max_iterations):
        changed = False
        for uid in sorted(graph.nodes):
            for pattern in patterns:
                if uid not in graph.nodes:
                    break
                rewriter = TGraphRewriter(graph)
                try:
                    pattern.match_and_rewrite(rewriter, uid)
                except NoRewriteApplicable as e:
                    logger.debug("%s: %s", pattern.name, e)
                    continue
                logger.debug(
                    "%s: rewrote %%%d, created %d nodes",
                    pattern.name,
                    uid,
                    len(rewriter.created),
                )
                rewrites += 1
                changed = True
                break
        if not changed:
            logger.debug("fixpoint reached after %d iterations", iteration + 1)
            break
    else:
        logger.warning(
            "graph %r did not converge in %d iterations", graph.name, max_iterations
        )
    return rewrites


def enforce_preconditions(
    graph: TGraph, tiling: TilingConstraints = DEFAULT_TILING
) -> int:
    """Rewrites the graph so that all tpp.matmul generics are tile aligned.

    Returns:
        The number of rewritten matmuls
    """
    rewrites = apply_patterns_greedily(graph, populate_enforce_patterns(tiling))
    logger.info(
        "enforce preconditions on graph %r: %d rewrites (simd=%d, parallel=%d)",
        graph.name,
        rewrites,
        tiling.simd,
        tiling.parallel,
    )
    return rewrites
