from __future__ import annotations

import math

import numpy as np
import pytest

from graphcalc.InputConvert import InputConvert


@pytest.mark.parametrize(
    "raw, expected",
    [
        (3, 3.0),
        (np.float64(2.5), 2.5),
        ("  -1.25 ", -1.25),
        ("1e3", 1000.0),
        ("2*pi", 2 * math.pi),
        ("pi/2", math.pi / 2),
        ("2pi", 2 * math.pi),
        ("e^2", math.e**2),
        ("sqrt(2)", math.sqrt(2)),
    ],
)
def test_converts_numbers_and_constant_expressions(raw, expected) -> None:
    assert InputConvert(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [True, "", "   ", "x + 1", "sqrt(-1)", "inf", float("nan"), None, "2*("])
def test_rejects_unusable_input(raw) -> None:
    with pytest.raises(ValueError):
        InputConvert(raw)


def test_allow_infinite() -> None:
    assert InputConvert("inf", allow_infinite=True) == math.inf
    assert InputConvert(float("-inf"), allow_infinite=True) == -math.inf
