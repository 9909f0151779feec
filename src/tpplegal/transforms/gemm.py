#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
"""
Padding of tpp.matmul generics to the hardware tile multiples.

The SIMD dimension (columns of C and B) must be a multiple of 16 and the
parallel dimension (rows of C and A) a multiple of 6. A misaligned
matmul is rewritten as:

  %A_pad = pad(%A, %one) : MxK -> M'xK
  %B_pad = pad(%B, %one) : KxN -> KxN'
  %C_pad = pad(%C, %zero) : MxN -> M'xN'
  %R = generic(%A_pad, %B_pad, %C_pad) {library_call = 'tpp.matmul'}
  %C_new = extract_slice(%R, offsets=(0, 0), sizes=(M, N), strides=(1, 1))

The extraction selects exactly the original index range, hence the fill
values never reach the result.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, cast
import logging

from tpplegal.graphs.builder import TGraphRewriter
from tpplegal.graphs.data import TTensorType
from tpplegal.graphs.graph import TGraph
from tpplegal.graphs.operators import TOperGeneric, MATMUL_LIBRARY_CALL

from .padding import padded_extent, pad_dimension, PadRequest, zero_value, one_value
from .pattern import RewritePattern, NoRewriteApplicable, InvariantViolation

__all__ = [
    "TilingConstraints",
    "DEFAULT_TILING",
    "GemmOperands",
    "PaddingPlan",
    "LegalizeResult",
    "GemmLegalizer",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TilingConstraints:
    """Required multiples of the matmul output dimensions."""

    simd: int = 16
    parallel: int = 6

    def __post_init__(self) -> None:
        assert self.simd >= 1 and self.parallel >= 1, (
            f"tile multiples must be positive: {self}"
        )


DEFAULT_TILING = TilingConstraints()


@dataclass(frozen=True)
class GemmOperands:
    A: int
    B: int
    C: int


@dataclass(frozen=True)
class PaddingPlan:
    """Padded target shapes of one legalization attempt."""

    shapes: Mapping[str, tuple[int, int]]
    padded: Mapping[str, tuple[int, int]]
    fills: Mapping[str, Any]

    @classmethod
    def build(
        cls,
        shapes: Mapping[str, tuple[int, int]],
        tiling: TilingConstraints,
        fills: Mapping[str, Any],
    ) -> "PaddingPlan":
        (m, k), (_, n) = shapes["A"], shapes["B"]
        pm = padded_extent(m, tiling.parallel)
        pn = padded_extent(n, tiling.simd)
        return cls(
            shapes=dict(shapes),
            padded={"A": (pm, k), "B": (k, pn), "C": (pm, pn)},
            fills=dict(fills),
        )

    def __str__(self) -> str:
        return ", ".join(
            [
                f"{role}: {self.shapes[role]} -> {self.padded[role]}"
                for role in ("A", "B", "C")
            ]
        )


class LegalizeResult(Enum):
    NO_MATCH = "no-match"
    SUCCESS = "success"


class GemmLegalizer(RewritePattern):
    """Pads the dimensions of tpp.matmul generics to the tile multiples.

    Fill values default to the multiplicative identity for A and B and
    to zero for C. They can be overridden per role, they are never
    observable in the result.
    """

    def __init__(
        self,
        tiling: TilingConstraints = DEFAULT_TILING,
        fills: Mapping[str, Any] | None = None,
    ) -> None:
        self._tiling = tiling
        self._fills = {} if fills is None else dict(fills)
        assert set(self._fills) <= {"A", "B", "C"}, (
            f"unexpected fill roles: {sorted(self._fills)}"
        )

    @property
    def name(self) -> str:
        return "pad-gemm-dimensions"

    @property
    def tiling(self) -> TilingConstraints:
        return self._tiling

    def _fill(self, role: str, type: TTensorType) -> Any:
        if role in self._fills:
            return self._fills[role]
        return zero_value(type.dtype) if role == "C" else one_value(type.dtype)

    def match(self, graph: TGraph, uid: int) -> GemmOperands:
        """Returns the matmul operands of the node.

        Raises:
            NoRewriteApplicable: when the node is not a misaligned static
                tensor tpp.matmul
            InvariantViolation: when the operand dimensions disagree
        """
        node = graph.node(uid)
        operator = node.operator
        if not isinstance(operator, TOperGeneric):
            raise NoRewriteApplicable(f"%{uid} is not a generic: {operator.name}")
        types = graph.operands_types(uid)
        if not all([isinstance(t, TTensorType) and t.kind == "tensor" for t in types]):
            raise NoRewriteApplicable(f"%{uid} has no tensor semantics")
        types = cast(list[TTensorType], types)
        if not all([t.is_constant_shape() for t in types]):
            raise NoRewriteApplicable(f"%{uid} has dynamic shapes")
        if operator.library_call != MATMUL_LIBRARY_CALL:
            raise NoRewriteApplicable(
                f"%{uid} library call is not {MATMUL_LIBRARY_CALL}: "
                f"{operator.library_call!r}"
            )
        if len(types) != 3 or not all([t.ndim == 2 for t in types]):
            raise NoRewriteApplicable(f"%{uid} is not a 2d gemm: {types}")
        (am, ak), (bk, bn), (cm, cn) = [t.constant_shape for t in types]
        if am != cm or bn != cn or ak != bk:
            raise InvariantViolation(
                f"%{uid} gemm dimensions disagree: A {am}x{ak}, B {bk}x{bn}, C {cm}x{cn}"
            )
        if cn % self._tiling.simd == 0 and cm % self._tiling.parallel == 0:
            raise NoRewriteApplicable(f"%{uid} is already aligned: {cm}x{cn}")
        a, b, c = node.operands
        return GemmOperands(A=a, B=b, C=c)

    def plan(self, graph: TGraph, operands: GemmOperands) -> PaddingPlan:
        types = {
            role: cast(TTensorType, graph.type_of(getattr(operands, role)))
            for role in ("A", "B", "C")
        }
        return PaddingPlan.build(
            shapes={
                role: cast(tuple[int, int], t.constant_shape)
                for role, t in types.items()
            },
            tiling=self._tiling,
            fills={role: self._fill(role, t) for role, t in types.items()},
        )

    def match_and_rewrite(self, rewriter: TGraphRewriter, uid: int) -> None:
        graph = rewriter.graph
        operands = self.match(graph, uid)
        plan = self.plan(graph, operands)
        logger.debug("%s: pad %%%d: %s", self.name, uid, plan)
        values = {"A": operands.A, "B": operands.B, "C": operands.C}
        (parallel_dim, simd_dim) = plan.shapes["C"]

        padded = pad_dimension(
            rewriter,
            simd_dim,
            self._tiling.simd,
            [
                PadRequest("C", values["C"], 1, plan.fills["C"]),
                PadRequest("B", values["B"], 1, plan.fills["B"]),
            ],
        )
        if padded is not None:
            values.update(padded)
        padded = pad_dimension(
            rewriter,
            parallel_dim,
            self._tiling.parallel,
            [
                PadRequest("C", values["C"], 0, plan.fills["C"]),
                PadRequest("A", values["A"], 0, plan.fills["A"]),
            ],
        )
        if padded is not None:
            values.update(padded)
        for role, value in values.items():
            shape = cast(TTensorType, graph.type_of(value)).constant_shape
            assert shape == plan.padded[role], (
                f"operand {role} padded to {shape}, planned {plan.padded[role]}"
            )

        node = graph.node(uid)
        operator = cast(TOperGeneric, node.operator)
        replacement = rewriter.create(
            TOperGeneric(
                dims=operator.dims,
                iterator_types=operator.iterator_types,
                indexing_maps=operator.indexing_maps,
                region=operator.region,
                library_call=MATMUL_LIBRARY_CALL,
            ),
            (values["A"], values["B"], values["C"]),
            name=node.name,
        )
        shape_c = plan.shapes["C"]
        extract = rewriter.create_extract_slice(
            replacement,
            offsets=[0] * len(shape_c),
            sizes=shape_c,
            strides=[1] * len(shape_c),
        )
        rewriter.replace_op(uid, extract)
        logger.debug("%s: replaced %%%d by %%%d", self.name, uid, extract)

    def try_legalize(self, graph: TGraph, uid: int) -> LegalizeResult:
        """Legalizes a single node, returns whether it was rewritten."""
        try:
            self.match_and_rewrite(TGraphRewriter(graph), uid)
        except NoRewriteApplicable as e:
            logger.debug("%s: no match: %s", self.name, e)
            return LegalizeResult.NO_MATCH
        return LegalizeResult.SUCCESS
