"""Standardized parameter-change event payloads.

This module defines ``ParamEvent``, the immutable structure emitted when a
parameter value changes (user edit or animation tick) and consumed by
:class:`~graphcalc.workspace.Workspace` hooks.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParamEvent:
    """Normalized parameter change event.

    Parameters
    ----------
    expression_id : str
        Id of the expression owning the parameter.
    parameter : str
        The parameter name (a single letter).
    old : float
        The previous value.
    new : float
        The updated value.
    source : str
        ``"user"`` for edits, ``"animation"`` for clock ticks.

    Notes
    -----
    Consumers should prefer ``parameter`` and ``new`` for stable semantics.

    Examples
    --------
    >>> from graphcalc.ParamEvent import ParamEvent  # doctest: +SKIP
    >>> ParamEvent(expression_id="e1", parameter="a", old=1.0, new=1.5, source="user")  # doctest: +SKIP
    """

    expression_id: str
    parameter: str
    old: float
    new: float
    source: str = "user"
