#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from abc import ABC, abstractmethod

from tpplegal.graphs.builder import TGraphRewriter

__all__ = [
    "NoRewriteApplicable",
    "InvariantViolation",
    "RewritePattern",
]


class NoRewriteApplicable(Exception):
    """Raised by a pattern when it does not apply, the graph is left as is."""


class InvariantViolation(AssertionError):
    """Raised when a node that must never reach a pattern is malformed."""


class RewritePattern(ABC):
    """Base abstract class for graph rewrite patterns

    A pattern matches a single node and, on success, replaces it using the
    given rewriter. All the checks must be done before creating any node.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Returns the pattern name used for logging.

        Returns:
            The pattern name
        """
        ...

    @abstractmethod
    def match_and_rewrite(self, rewriter: TGraphRewriter, uid: int) -> None:
        """Matches the node and rewrites it.

        Args:
            rewriter: the rewriter on the graph owning the node
            uid: the node to match

        Raises:
            NoRewriteApplicable: when the pattern does not apply
        """
        ...
