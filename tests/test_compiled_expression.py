from __future__ import annotations

import math
import warnings

import numpy as np
import pytest
import sympy as sp

from graphcalc.compiled_expression import (
    CompiledExpression,
    ExpressionHandle,
    compile_expression,
    real_array,
    real_scalar,
)
from graphcalc.errors import UNDEFINED, CompilationError, EvaluationError


def test_round_trip_scalar_values() -> None:
    assert float(compile_expression("x^2", ["x"]).evaluate({"x": 2})) == 4.0
    assert float(compile_expression("a*x", ["x", "a"]).evaluate({"x": 2, "a": 3})) == 6.0


def test_extra_bindings_are_ignored() -> None:
    f = compile_expression("x + 1", ["x"])
    assert float(f.evaluate({"x": 1.0, "a": 99.0, "unused": "anything"})) == 2.0


def test_missing_referenced_binding_fails() -> None:
    f = compile_expression("a*x", ["x", "a"])
    with pytest.raises(EvaluationError):
        f.evaluate({"x": 2.0})


def test_unlisted_symbol_is_rejected_at_compile_time() -> None:
    with pytest.raises(CompilationError) as info:
        compile_expression("a*x", ["x"])
    assert info.value.category == UNDEFINED


def test_only_referenced_names_become_arguments() -> None:
    f = compile_expression("b + a", ["a", "b", "x"])
    assert f.variables == ("a", "b")
    assert "def _generated(a, b)" in f.source


def test_constant_expression_has_no_arguments() -> None:
    f = compile_expression("pi", ["x"])
    assert f.variables == ()
    assert math.isclose(float(f.evaluate({"x": 1.0})), math.pi)


def test_array_bindings_broadcast() -> None:
    f = compile_expression("x^2", ["x"])
    np.testing.assert_allclose(f.evaluate({"x": np.array([1.0, 2.0, 3.0])}), [1.0, 4.0, 9.0])


def test_floating_point_warnings_are_silenced() -> None:
    f = compile_expression("1/x", ["x"])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        value = f.evaluate({"x": 0.0})
    assert np.isinf(value)


def test_handle_satisfies_protocol() -> None:
    f = compile_expression("sin(x)", ["x"])
    assert isinstance(f, CompiledExpression)
    assert isinstance(f, ExpressionHandle)
    assert "CompiledExpression" in repr(f)


def test_real_scalar_normalization() -> None:
    assert real_scalar(2) == 2.0
    assert real_scalar(np.float64(1.5)) == 1.5
    assert real_scalar(complex(3.0, 0.0)) == 3.0
    assert real_scalar(1j) is None
    assert real_scalar(float("nan")) is None
    assert real_scalar(float("inf")) is None
    assert real_scalar(np.array([1.0, 2.0])) is None
    assert real_scalar(True) is None


def test_real_array_marks_non_real_as_nan() -> None:
    out = real_array(np.array([1.0, np.inf, complex(2, 1), complex(4, 0)]), (4,))
    assert out[0] == 1.0
    assert np.isnan(out[1]) and np.isnan(out[2])
    assert out[3] == 4.0
    np.testing.assert_array_equal(real_array(5.0, (3,)), [5.0, 5.0, 5.0])


def test_max_compiles_to_a_vectorized_reduction() -> None:
    f = compile_expression("Max(x, 1)", ["x"])
    assert "functools.reduce" in f.source
    np.testing.assert_allclose(f.evaluate({"x": np.array([-2.0, 0.5, 3.0])}), [1.0, 1.0, 3.0])


def test_special_functions_outside_numpy_evaluate_per_sample() -> None:
    assert math.isclose(float(compile_expression("erf(x)", ["x"]).evaluate({"x": 0.5})), math.erf(0.5))
    assert math.isclose(float(compile_expression("gamma(x)", ["x"]).evaluate({"x": 5.0})), 24.0)


def test_special_function_domain_error_is_an_evaluation_error() -> None:
    f = compile_expression("gamma(x)", ["x"])
    with pytest.raises(EvaluationError):
        f.evaluate({"x": 0.0})


def test_arguments_keep_their_variable_names() -> None:
    first = compile_expression("a*x", ["x", "a"])
    second = compile_expression("a*x", ["x", "a"])
    assert first.call_signature == (("x", "x"), ("a", "a"))
    assert first.source == second.source


def test_names_shadowing_generated_modules_are_renamed() -> None:
    f = compile_expression(sp.Symbol("math") + 1, ["math"])
    assert f.call_signature == (("math", "math__0"),)
    assert float(f.evaluate({"math": 2.0})) == 3.0
