import numpy as np
import pytest

import tpplegal.graphs.op as O
from tpplegal.graphs import TTensor, TTensorType, DYNAMIC
from tpplegal.graphs.operators import TOperGeneric, MATMUL_LIBRARY_CALL
from tpplegal.transforms import (
    GemmLegalizer,
    LegalizeResult,
    InvariantViolation,
    NoRewriteApplicable,
    TilingConstraints,
)


def build_matmul(shape_a, shape_b, shape_c, dtype="float32"):
    with O.graph(name="mm") as gb:
        a = O.tensor(shape_a, dtype, name="A")
        b = O.tensor(shape_b, dtype, name="B")
        c = O.tensor(shape_c, dtype, name="C")
        mm = O.matmul(a, b, c, name="C")
        O.outputs(mm)
    return gb.graph, mm


def nodes_named(graph, name):
    return [node for node in graph.nodes.values() if node.operator.name == name]


def run_matmul(graph, shapes, dtype="float32", seed=0):
    rng = np.random.default_rng(seed)
    arrays = [rng.integers(-4, 4, size=shape).astype(dtype) for shape in shapes]
    result = graph.forward([TTensor(array) for array in arrays])[0].numpy()
    a, b, c = arrays
    return result, c + a @ b


def test_legalize_misaligned_matmul():
    graph, mm = build_matmul((10, 20), (20, 17), (10, 17))
    a, b, c = graph.inputs
    assert GemmLegalizer().try_legalize(graph, mm) == LegalizeResult.SUCCESS
    assert mm not in graph.nodes

    generics = nodes_named(graph, "generic")
    assert len(generics) == 1
    generic = generics[0]
    assert generic.operator.library_call == MATMUL_LIBRARY_CALL
    assert graph.operands_types(generic.uid) == [
        TTensorType((12, 20), "float32"),
        TTensorType((20, 32), "float32"),
        TTensorType((12, 32), "float32"),
    ]

    (out,) = graph.outputs
    extract = graph.node(out)
    assert extract.operator.name == "extract_slice"
    assert extract.operands == (generic.uid,)
    assert extract.operator.attrs.offsets == (0, 0)
    assert extract.operator.attrs.sizes == (10, 17)
    assert extract.operator.attrs.strides == (1, 1)
    assert graph.type_of(out) == TTensorType((10, 17), "float32")

    # C is padded on both dimensions, the second pad applies to the first one
    pads = nodes_named(graph, "pad")
    assert len(pads) == 4
    sources = sorted([pad.operands[0] for pad in pads])
    assert a in sources and b in sources and c in sources
    assert sorted([pad.name for pad in pads]) == ["A_pad", "B_pad", "C_pad", "C_pad"]


def test_legalize_preserves_result():
    graph, mm = build_matmul((10, 20), (20, 17), (10, 17))
    GemmLegalizer().try_legalize(graph, mm)
    result, expected = run_matmul(graph, [(10, 20), (20, 17), (10, 17)])
    assert result.shape == (10, 17)
    assert np.array_equal(result, expected)


FILLS_TESTS = [
    ({"A": 0.0, "B": 0.0, "C": 0.0}, "zero fills"),
    ({"A": 7.5, "B": -3.0, "C": 42.0}, "arbitrary fills"),
    ({"A": np.inf, "B": np.inf, "C": np.nan}, "non finite fills"),
    ({"C": 1e30}, "large accumulator fill"),
]

@pytest.mark.parametrize(
    "fills, msg",
    FILLS_TESTS,
)
def test_legalize_fill_invariance(fills, msg):
    for seed, (m, k, n) in enumerate([(10, 20, 17), (1, 3, 1), (7, 5, 33), (12, 4, 15)]):
        graph, mm = build_matmul((m, k), (k, n), (m, n))
        assert GemmLegalizer(fills=fills).try_legalize(graph, mm) == LegalizeResult.SUCCESS
        with np.errstate(invalid="ignore", over="ignore"):
            result, expected = run_matmul(graph, [(m, k), (k, n), (m, n)], seed=seed)
        assert np.array_equal(result, expected), f"unexpected result: {msg}: {(m, k, n)}"


def test_legalize_aligned_is_no_match():
    graph, mm = build_matmul((12, 20), (20, 16), (12, 16))
    num_nodes = len(graph.nodes)
    assert GemmLegalizer().try_legalize(graph, mm) == LegalizeResult.NO_MATCH
    assert len(graph.nodes) == num_nodes
    assert graph.outputs == [mm]


def test_legalize_simd_only():
    graph, mm = build_matmul((12, 20), (20, 17), (12, 17))
    a, _, _ = graph.inputs
    GemmLegalizer().try_legalize(graph, mm)
    (generic,) = nodes_named(graph, "generic")
    assert generic.operands[0] == a
    assert [t.shape for t in graph.operands_types(generic.uid)] == [(12, 20), (20, 32), (12, 32)]


def test_legalize_parallel_only():
    graph, mm = build_matmul((10, 20), (20, 16), (10, 16))
    _, b, _ = graph.inputs
    GemmLegalizer().try_legalize(graph, mm)
    (generic,) = nodes_named(graph, "generic")
    assert generic.operands[1] == b
    assert [t.shape for t in graph.operands_types(generic.uid)] == [(12, 20), (20, 16), (12, 16)]


def test_legalize_is_idempotent():
    graph, mm = build_matmul((10, 20), (20, 17), (10, 17))
    legalizer = GemmLegalizer()
    legalizer.try_legalize(graph, mm)
    (generic,) = nodes_named(graph, "generic")
    num_nodes = len(graph.nodes)
    assert legalizer.try_legalize(graph, generic.uid) == LegalizeResult.NO_MATCH
    assert len(graph.nodes) == num_nodes


def test_legalize_custom_tiling():
    graph, mm = build_matmul((10, 20), (20, 17), (10, 17))
    GemmLegalizer(TilingConstraints(simd=8, parallel=4)).try_legalize(graph, mm)
    (generic,) = nodes_named(graph, "generic")
    assert graph.type_of(generic.uid) == TTensorType((12, 24), "float32")


def test_legalize_integer_matmul():
    graph, mm = build_matmul((5, 3), (3, 9), (5, 9), dtype="int32")
    GemmLegalizer().try_legalize(graph, mm)
    result, expected = run_matmul(graph, [(5, 3), (3, 9), (5, 9)], dtype="int32")
    assert result.dtype == np.int32
    assert np.array_equal(result, expected)


def test_legalize_dimension_disagreement():
    graph, mm = build_matmul((10, 20), (21, 17), (10, 17))
    num_nodes = len(graph.nodes)
    with pytest.raises(InvariantViolation):
        GemmLegalizer().try_legalize(graph, mm)
    assert len(graph.nodes) == num_nodes


def build_memref_matmul():
    with O.graph() as gb:
        a = O.memref((10, 20), "float32")
        b = O.memref((20, 17), "float32")
        c = O.memref((10, 17), "float32")
        mm = O.matmul(a, b, c)
    return gb.graph, mm


def build_untagged_generic():
    with O.graph() as gb:
        a = O.tensor((10, 20), "float32")
        b = O.tensor((20, 17), "float32")
        c = O.tensor((10, 17), "float32")
        mm = O.generic(
            (a, b),
            c,
            dims=("i", "j", "k"),
            iterator_types=("parallel", "parallel", "reduction"),
            indexing_maps=(("i", "k"), ("k", "j"), ("i", "j")),
        )
    return gb.graph, mm


def build_batch_matmul():
    with O.graph() as gb:
        a = O.tensor((2, 10, 20), "float32")
        b = O.tensor((2, 20, 17), "float32")
        c = O.tensor((2, 10, 17), "float32")
        mm = O.generic(
            (a, b),
            c,
            dims=("b", "i", "j", "k"),
            iterator_types=("parallel", "parallel", "parallel", "reduction"),
            indexing_maps=(("b", "i", "k"), ("b", "k", "j"), ("b", "i", "j")),
            library_call=MATMUL_LIBRARY_CALL,
        )
    return gb.graph, mm


def build_dynamic_matmul():
    return build_matmul((DYNAMIC, 20), (20, 17), (DYNAMIC, 17))


def build_relu():
    with O.graph() as gb:
        a = O.tensor((10, 17), "float32")
        res = O.relu(a, O.tensor((10, 17), "float32"))
    return gb.graph, res


def build_input():
    with O.graph() as gb:
        a = O.tensor((10, 17), "float32")
    return gb.graph, a


NO_MATCH_TESTS = [
    (build_memref_matmul, "buffer semantics"),
    (build_untagged_generic, "generic without library call"),
    (build_batch_matmul, "rank 3 operands"),
    (build_dynamic_matmul, "dynamic shapes"),
    (build_relu, "not a generic"),
    (build_input, "graph input"),
]

@pytest.mark.parametrize(
    "builder, msg",
    NO_MATCH_TESTS,
)
def test_legalize_no_match(builder, msg):
    graph, uid = builder()
    num_nodes = len(graph.nodes)
    legalizer = GemmLegalizer()
    assert legalizer.try_legalize(graph, uid) == LegalizeResult.NO_MATCH, f"unexpected match: {msg}"
    assert len(graph.nodes) == num_nodes, f"unexpected graph change: {msg}"
    with pytest.raises(NoRewriteApplicable):
        legalizer.match(graph, uid)


def test_padded_generic_keeps_body():
    graph, mm = build_matmul((10, 20), (20, 17), (10, 17))
    original = graph.node(mm).operator
    GemmLegalizer().try_legalize(graph, mm)
    (generic,) = nodes_named(graph, "generic")
    operator = generic.operator
    assert isinstance(operator, TOperGeneric)
    assert operator is not original
    assert operator.indexing_maps == original.indexing_maps
    assert operator.iterator_types == original.iterator_types
    assert operator.region == original.region
    assert generic.name == "C"


PLAN_TESTS = [
    ((10, 20, 17), (12, 20), (20, 32), (12, 32), "both dims padded"),
    ((12, 20, 17), (12, 20), (20, 32), (12, 32), "simd dim padded"),
    ((10, 20, 16), (12, 20), (20, 16), (12, 16), "parallel dim padded"),
    ((1, 1, 1), (6, 1), (1, 16), (6, 16), "unit dims padded"),
]

@pytest.mark.parametrize(
    "dims, padded_a, padded_b, padded_c, msg",
    PLAN_TESTS,
)
def test_padding_plan_matches_rewrite(dims, padded_a, padded_b, padded_c, msg):
    m, k, n = dims
    graph, mm = build_matmul((m, k), (k, n), (m, n))
    legalizer = GemmLegalizer()
    plan = legalizer.plan(graph, legalizer.match(graph, mm))
    assert plan.shapes == {"A": (m, k), "B": (k, n), "C": (m, n)}, f"unexpected shapes: {msg}"
    assert plan.padded == {"A": padded_a, "B": padded_b, "C": padded_c}, f"unexpected plan: {msg}"
    assert plan.fills["C"] == 0 and plan.fills["A"] == 1, f"unexpected fills: {msg}"
    legalizer.try_legalize(graph, mm)
    (generic,) = nodes_named(graph, "generic")
    shapes = [t.shape for t in graph.operands_types(generic.uid)]
    assert shapes == [padded_a, padded_b, padded_c], f"unexpected rewrite: {msg}"
