import pytest

from tpplegal.graphs.data import (
    DYNAMIC,
    TTensorType,
    MemRefType,
    ScalarType,
)
from tpplegal.verify import (
    ErrorKind,
    ShapeMismatch,
    DiagnosticEngine,
    broadcast_shapes,
    verify_broadcastable_shape,
    check_broadcastable_shape,
    check_broadcastable_operands,
)

def T(*shape):
    return TTensorType(shape=shape, dtype="float32")

BROADCAST_SHAPES_TESTS = [
    ((3, 1), (1, 4), (3, 4), "unit dims broadcast"),
    ((4,), (2, 1), (2, 4), "trailing alignment"),
    ((DYNAMIC, 4), (3, 1), (3, 4), "dynamic against known gives known"),
    ((1,), (DYNAMIC,), (DYNAMIC,), "unit against dynamic gives dynamic"),
    ((DYNAMIC,), (DYNAMIC,), (DYNAMIC,), "dynamic against dynamic"),
    ((), (5, 6), (5, 6), "rank 0 broadcasts to anything"),
    ((3, 2), (1, 4), None, "2 and 4 are incompatible"),
]

@pytest.mark.parametrize(
    "lhs, rhs, expected, msg",
    BROADCAST_SHAPES_TESTS,
)
def test_broadcast_shapes(lhs, rhs, expected, msg):
    assert broadcast_shapes(lhs, rhs) == expected, f"unexpected: {msg}"
    assert broadcast_shapes(rhs, lhs) == expected, f"unexpected reversed: {msg}"


BROADCASTABLE_TESTS = [
    ([T(3, 1), T(1, 4)], T(3, 4), None, None, "compatible inputs and output"),
    ([T(3, 2), T(1, 4)], T(3, 4), ErrorKind.SHAPE_MISMATCH, 1, "incompatible inputs"),
    ([T(DYNAMIC, 4)], T(3, 4), None, None, "dynamic input dim"),
    ([], T(5, 6), None, None, "no input is always compatible"),
    ([T(4)], T(2, 3, 4), None, None, "output has more leading dims"),
    ([T(1, 4)], T(3, 4), None, None, "output widens inferred unit dim"),
    ([T(3, 4)], T(1, 4), ErrorKind.SHAPE_MISMATCH, 1, "output unit dim too narrow"),
    ([T(3, 4)], T(4), ErrorKind.SHAPE_MISMATCH, 1, "output rank lower than inputs"),
    ([T(2), T(3), T(2)], T(2), ErrorKind.SHAPE_MISMATCH, 1, "first failing input reported"),
    ([T(2), T(2), T(3)], T(2), ErrorKind.SHAPE_MISMATCH, 2, "third input reported"),
    ([ScalarType("float32"), T(3, 4)], T(3, 4), None, None, "scalar operand is rank 0"),
    ([TTensorType(dtype="float32"), T(3, 4)], T(3, 4), None, None, "unranked operand is rank 0"),
    ([MemRefType((3, 1), "float32"), T(1, 4)], MemRefType((3, 4), "float32"), None, None, "memref operands"),
]

@pytest.mark.parametrize(
    "inputs, output, error, operand, msg",
    BROADCASTABLE_TESTS,
)
def test_verify_broadcastable_shape(inputs, output, error, operand, msg):
    verdict = verify_broadcastable_shape(inputs, output)
    assert verdict.error == error, f"unexpected verdict: {msg}: {verdict}"
    assert verdict.operand == operand, f"unexpected operand: {msg}: {verdict}"
    assert check_broadcastable_shape(inputs, output) == (error is None), f"unexpected check: {msg}"
    assert check_broadcastable_operands([*inputs, output]) == (error is None), f"unexpected operands check: {msg}"


def test_broadcast_diagnostic():
    diagnostics = DiagnosticEngine()
    verdict = verify_broadcastable_shape(
        [T(3, 2), T(1, 4)], T(3, 4), diagnostics=diagnostics, location="%3 tpp.add"
    )
    assert not verdict
    assert len(diagnostics.diagnostics) == 1
    diag = diagnostics.diagnostics[0]
    assert diag.kind == ErrorKind.SHAPE_MISMATCH
    assert diag.operand == 1
    assert str(diag).startswith("%3 tpp.add: error: operands don't have broadcast-compatible shapes")
    with pytest.raises(ShapeMismatch) as exc:
        verdict.raise_if_failed()
    assert exc.value.operand == 1


def test_broadcast_success_is_silent():
    diagnostics = DiagnosticEngine()
    verdict = verify_broadcastable_shape([T(3, 1)], T(3, 4), diagnostics=diagnostics)
    assert verdict.ok
    verdict.raise_if_failed()
    assert not diagnostics.has_errors
