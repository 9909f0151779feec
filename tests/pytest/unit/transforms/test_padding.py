import numpy as np
import pytest

import tpplegal.graphs.op as O
from tpplegal.graphs import TGraphRewriter, TTensorType, VectorType
from tpplegal.transforms import (
    padded_extent,
    zero_value,
    one_value,
    PadRequest,
    pad_dimension,
)

PADDED_EXTENT_TESTS = [
    (10, 16, 16, "round up to simd"),
    (16, 16, 16, "aligned is unchanged"),
    (17, 16, 32, "round up to next multiple"),
    (10, 6, 12, "round up to parallel"),
    (12, 6, 12, "aligned parallel"),
    (1, 6, 6, "one rounds to multiple"),
    (0, 6, 0, "zero is aligned"),
    (7, 1, 7, "multiple of one is identity"),
    (2**53 + 1, 2, 2**53 + 2, "large extents are exact"),
]

@pytest.mark.parametrize(
    "current, multiple, expected, msg",
    PADDED_EXTENT_TESTS,
)
def test_padded_extent(current, multiple, expected, msg):
    assert padded_extent(current, multiple) == expected, f"unexpected: {msg}"


@pytest.mark.parametrize("multiple", [1, 2, 6, 16])
def test_padded_extent_property(multiple):
    for current in range(0, 100):
        padded = padded_extent(current, multiple)
        assert padded % multiple == 0
        assert current <= padded < current + multiple
        assert (padded == current) == (current % multiple == 0)


CONSTANT_TESTS = [
    ("float32", 0, np.float32, "float zero"),
    ("int8", 1, np.int8, "integer one"),
    ("index", 1, np.int64, "index is int64"),
    ("bool", 1, np.bool_, "bool one is True"),
    ("complex64", 0, np.complex64, "complex zero"),
]

@pytest.mark.parametrize(
    "dtype, scalar, np_type, msg",
    CONSTANT_TESTS,
)
def test_constant_values(dtype, scalar, np_type, msg):
    value = zero_value(dtype) if scalar == 0 else one_value(dtype)
    assert isinstance(value, np_type), f"unexpected type: {msg}"
    assert value == scalar, f"unexpected value: {msg}"


def test_vector_constant_splat():
    value = one_value(VectorType((2, 4), "float32"))
    assert value.shape == (2, 4)
    assert value.dtype == np.float32
    assert (value == 1).all()
    assert (zero_value(VectorType((4,), "int32")) == 0).all()


def test_constant_unsupported_dtype():
    with pytest.raises(ValueError):
        zero_value("datetime64[s]")


def test_pad_dimension_aligned():
    with O.graph() as gb:
        a = O.tensor((12, 20), "float32")
    rewriter = TGraphRewriter(gb.graph)
    assert pad_dimension(rewriter, 12, 6, [PadRequest("A", a, 0, 1.0)]) is None
    assert rewriter.created == []


def test_pad_dimension_shared():
    with O.graph() as gb:
        b = O.tensor((20, 17), "float32")
        c = O.tensor((10, 17), "float32")
    graph = gb.graph
    rewriter = TGraphRewriter(graph)
    padded = pad_dimension(
        rewriter,
        17,
        16,
        [PadRequest("C", c, 1, 0.0), PadRequest("B", b, 1, 1.0)],
    )
    assert padded is not None
    assert graph.type_of(padded["C"]) == TTensorType((10, 32), "float32")
    assert graph.type_of(padded["B"]) == TTensorType((20, 32), "float32")
    assert graph.node(padded["B"]).name == "B_pad"
    # one fill constant and one pad per operand
    assert len(rewriter.created) == 4


def test_pad_dimension_vector_elements():
    elt = VectorType((4,), "float32")
    with O.graph() as gb:
        a = O.tensor((5, 3), elt)
    graph = gb.graph
    rewriter = TGraphRewriter(graph)
    padded = pad_dimension(rewriter, 5, 6, [PadRequest("A", a, 0, one_value(elt))])
    assert padded is not None
    assert graph.type_of(padded["A"]) == TTensorType((6, 3), elt)


def test_pad_dimension_mismatch():
    with O.graph() as gb:
        a = O.tensor((10, 20), "float32")
    with pytest.raises(AssertionError):
        pad_dimension(TGraphRewriter(gb.graph), 11, 6, [PadRequest("A", a, 0, 1.0)])
