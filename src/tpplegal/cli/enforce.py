#!/usr/bin/env python3
#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
"""
Pads a matmul to the TPP tile multiples and prints the rewritten graph.

For instance:
  tpp-enforce 10x20 20x17 --check
"""
import argparse
from collections.abc import Sequence
import logging
import numpy as np

import tpplegal.graphs.op as O
from tpplegal.graphs.data import TTensor
from tpplegal.graphs.graph import TGraph
from tpplegal.transforms import TilingConstraints, enforce_preconditions
from tpplegal.verify import DiagnosticEngine, verify_graph

logger = logging.getLogger(__name__)

DTYPES = ["float32", "float64", "int32", "int64"]


def parse_shape(arg: str) -> tuple[int, int]:
    """Parses a 2d static shape given as `RxC`."""
    try:
        dims = tuple([int(dim) for dim in arg.lower().split("x")])
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid shape: {arg!r}")
    if len(dims) != 2 or not all([dim > 0 for dim in dims]):
        raise argparse.ArgumentTypeError(f"expected a 2d shape RxC: {arg!r}")
    return dims[0], dims[1]


def build_matmul_graph(
    shape_a: tuple[int, int], shape_b: tuple[int, int], dtype: str
) -> TGraph:
    (m, k), (kb, n) = shape_a, shape_b
    if k != kb:
        raise ValueError(f"reduction dimensions mismatch: {shape_a} x {shape_b}")
    with O.graph(name="matmul") as gb:
        a = O.tensor((m, k), dtype, name="A")
        b = O.tensor((k, n), dtype, name="B")
        c = O.tensor((m, n), dtype, name="C")
        O.outputs(O.matmul(a, b, c, name="C"))
    return gb.graph


def random_inputs(graph: TGraph, rng: np.random.Generator) -> list[TTensor]:
    inputs = []
    for uid in graph.inputs:
        type = graph.type_of(uid)
        data = rng.integers(-8, 8, size=type.constant_shape).astype(type.dtype)
        inputs.append(TTensor(data, type=type))
    return inputs


def check_graph(graph: TGraph, reference: TGraph, seed: int) -> bool:
    inputs = random_inputs(reference, np.random.default_rng(seed))
    expected = reference.forward(inputs)[0].numpy()
    result = graph.forward(inputs)[0].numpy()
    if result.shape != expected.shape:
        logger.error("result shape mismatch: %s != %s", result.shape, expected.shape)
        return False
    return bool(np.allclose(result, expected))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Enforce TPP matmul preconditions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("lhs", type=parse_shape, help="A operand shape, as MxK")
    parser.add_argument("rhs", type=parse_shape, help="B operand shape, as KxN")
    parser.add_argument(
        "--dtype", type=str, choices=DTYPES, default="float32", help="element type"
    )
    parser.add_argument(
        "--simd-multiple",
        type=int,
        default=16,
        help="required multiple of the C columns",
    )
    parser.add_argument(
        "--parallel-multiple",
        type=int,
        default=6,
        help="required multiple of the C rows",
    )
    parser.add_argument(
        "--check",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="check numerically the rewritten graph against the original",
    )
    parser.add_argument("--seed", type=int, default=0, help="seed for --check inputs")
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        help="do not print the graphs",
    )
    parser.add_argument(
        "--debug", action=argparse.BooleanOptionalAction, help="debug mode"
    )
    parser.add_argument(
        "--debug-tpplegal",
        action=argparse.BooleanOptionalAction,
        help="debug tpplegal modules",
    )
    args = parser.parse_args(argv)
    if args.lhs[1] != args.rhs[0]:
        parser.error(f"reduction dimensions mismatch: {args.lhs} x {args.rhs}")
    if args.simd_multiple < 1 or args.parallel_multiple < 1:
        parser.error("tile multiples must be positive")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig()
    logger.setLevel(logging.INFO)
    if args.debug:
        logger.setLevel(logging.DEBUG)
    if args.debug_tpplegal:
        logging.getLogger("tpplegal").setLevel(logging.DEBUG)

    tiling = TilingConstraints(
        simd=args.simd_multiple, parallel=args.parallel_multiple
    )
    reference = build_matmul_graph(args.lhs, args.rhs, args.dtype)
    graph = build_matmul_graph(args.lhs, args.rhs, args.dtype)
    if not args.quiet:
        print(reference, end="")

    rewrites = enforce_preconditions(graph, tiling)
    logger.info("%d matmul rewritten", rewrites)
    if not args.quiet:
        print(graph, end="")

    diagnostics = DiagnosticEngine()
    if not verify_graph(graph, diagnostics):
        logger.error(
            "graph verification failed: %d diagnostics", len(diagnostics.diagnostics)
        )
        return 1
    if args.check:
        if not check_graph(graph, reference, args.seed):
            logger.error("rewritten graph result differs from the original")
            return 1
        logger.info("rewritten graph result matches the original")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
