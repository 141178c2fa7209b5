"""Entry point from raw text to a compiled curve.

:func:`parse_expression` combines the classifier and the compilation cache
and folds every failure into a :class:`ParseResult`, so callers never see an
exception for bad user input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .cache import CompilationCache
from .classifier import CompiledCurve, classify
from .errors import ClassificationError, CompilationError

__all__ = ["ParseResult", "parse_expression"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :func:`parse_expression`.

    Exactly one of ``curve`` and ``error`` is set.
    """

    is_valid: bool
    curve: Optional[CompiledCurve] = None
    error: Optional[str] = None

    @property
    def kind(self) -> Optional[str]:
        return None if self.curve is None else self.curve.kind


def parse_expression(text: str, cache: Optional[CompilationCache] = None) -> ParseResult:
    """Classify and compile ``text``, consulting ``cache`` first.

    Parameters
    ----------
    text : str
        Raw expression text. It is also the cache key, unstripped.
    cache : CompilationCache, optional
        Cache to read from and store successful compilations in. Failures
        are never cached.

    Returns
    -------
    ParseResult

    Examples
    --------
    >>> parse_expression("y <= sin(x)").kind
    'inequality'
    >>> parse_expression("x = t").error
    'use the x=..., y=... format for parametric equations'
    """
    if cache is not None:
        entry = cache.get(text)
        if entry is not None:
            return ParseResult(is_valid=True, curve=entry.curve)

    try:
        curve = classify(text)
    except ClassificationError as exc:
        logger.debug("parse_expression: %r rejected: %s", text, exc)
        return ParseResult(is_valid=False, error=str(exc))
    except CompilationError as exc:
        logger.debug("parse_expression: %r failed to compile (%s): %s", text, exc.category, exc.detail)
        return ParseResult(is_valid=False, error=exc.user_message)

    if cache is not None:
        cache.put(text, curve)
    return ParseResult(is_valid=True, curve=curve)
