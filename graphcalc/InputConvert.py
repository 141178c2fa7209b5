# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

import math
from typing import Any

import sympy as sp

from .errors import CompilationError
from .parsing import parse_math

__all__ = ["InputConvert"]


def InputConvert(obj: Any, *, allow_infinite: bool = False) -> float:
    """
    Convert a user-entered number to a finite ``float``.

    Rules:
    - Numbers (``int``, ``float``, NumPy scalars): cast via ``float(obj)``.
      ``bool`` is rejected.
    - Strings:
        1) try ``float(s)``
        2) else parse as a calculator expression (``"2*pi"``, ``"pi/2"``,
           ``"e^2"``) and evaluate it numerically. The expression must not
           contain free symbols.
    - The result must be real, and finite unless ``allow_infinite=True``.

    Raises
    ------
    ValueError
        If conversion fails, the value is complex, or it is not finite.
    """
    if isinstance(obj, bool):
        raise ValueError(f"Could not convert {obj!r} to float: booleans are not numbers.")

    value: float
    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError("Cannot convert empty string to float.")
        try:
            value = float(s)
        except ValueError:
            value = _evaluate_text(obj, s)
    else:
        try:
            value = float(obj)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Could not convert {obj!r} to float.") from e

    if math.isnan(value) or (math.isinf(value) and not allow_infinite):
        raise ValueError(f"Could not convert {obj!r} to a finite float.")
    return value


def _evaluate_text(obj: Any, s: str) -> float:
    try:
        expr = parse_math(s)
    except CompilationError as e:
        raise ValueError(f"Could not convert {obj!r} to float: {e.user_message}.") from e

    if expr.free_symbols:
        names = ", ".join(sorted(sym.name for sym in expr.free_symbols))
        raise ValueError(f"Could not convert {obj!r} to float: unbound symbol(s) {names}.")

    try:
        number = complex(sp.N(expr))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Could not convert {obj!r} to float.") from e
    if number.imag != 0:
        raise ValueError(f"Could not convert non-real {obj!r} to float: imaginary part is non-zero.")
    return number.real

# === END OF SECTION: InputConvert [id: InputConvert]===
