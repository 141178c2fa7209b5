"""Scene -> Plotly figure hand-off.

:func:`scene_to_plotly` rebuilds a rendered :class:`~graphcalc.scene.Scene`
as a ``plotly.graph_objects.Figure`` in pixel coordinates, so downstream
code can write PNG/SVG with Plotly's own exporters. Nothing here touches the
filesystem.

Layout mapping
--------------
- Both axes span the canvas in pixels and are hidden; the y-axis is reversed
  so screen y grows downward as in the scene.
- Background, grid and axis primitives become layout shapes below the
  traces; the hover box is a shape above them.
- Strokes, fills, point clouds and markers become ``go.Scatter`` traces in
  paint order.
- Labels become annotations.
"""

from __future__ import annotations

from typing import Any

import plotly.graph_objects as go

from .scene import HOVER, Fill, Label, Marker, PointCloud, Rect, Scene, Segment, Stroke

__all__ = ["scene_to_plotly"]

_ANCHORS = {"left": "left", "center": "center", "right": "right"}


def _rect_shape(item: Rect) -> dict[str, Any]:
    return dict(
        type="rect",
        xref="x",
        yref="y",
        x0=item.x,
        y0=item.y,
        x1=item.x + item.width,
        y1=item.y + item.height,
        fillcolor=item.fill,
        line=dict(color=item.stroke, width=1 if item.stroke else 0),
        layer="above" if item.layer == HOVER else "below",
    )


def _segment_shape(item: Segment) -> dict[str, Any]:
    return dict(
        type="line",
        xref="x",
        yref="y",
        x0=item.x0,
        y0=item.y0,
        x1=item.x1,
        y1=item.y1,
        line=dict(color=item.color, width=item.width, dash="dash" if item.dash else "solid"),
        layer="below",
    )


def _trace(item: Any) -> go.Scatter:
    common = dict(showlegend=False, hoverinfo="skip", name=item.expression_id or item.layer)
    if isinstance(item, Stroke):
        xs, ys = zip(*item.points)
        return go.Scatter(x=xs, y=ys, mode="lines", line=dict(color=item.color, width=item.width), **common)
    if isinstance(item, Fill):
        xs, ys = zip(*item.points)
        return go.Scatter(
            x=xs + xs[:1],
            y=ys + ys[:1],
            mode="lines",
            fill="toself",
            fillcolor=item.color,
            line=dict(width=0, color=item.color),
            opacity=item.opacity,
            **common,
        )
    if isinstance(item, PointCloud):
        return go.Scatter(
            x=item.points[:, 0],
            y=item.points[:, 1],
            mode="markers",
            marker=dict(symbol="square", size=item.size, color=item.color, line=dict(width=0)),
            opacity=item.opacity,
            **common,
        )
    if isinstance(item, Marker):
        return go.Scatter(
            x=[item.x],
            y=[item.y],
            mode="markers",
            marker=dict(symbol="circle", size=2 * item.radius, color=item.color, line=dict(width=0)),
            **common,
        )
    raise TypeError(f"not a trace primitive: {type(item).__name__}")


def _annotation(item: Label) -> dict[str, Any]:
    return dict(
        x=item.x,
        y=item.y,
        xref="x",
        yref="y",
        text=item.text,
        showarrow=False,
        xanchor=_ANCHORS.get(item.align, "left"),
        yanchor="middle",
        font=dict(color=item.color, size=item.font_size),
    )


def scene_to_plotly(scene: Scene) -> go.Figure:
    """Build a pixel-space Plotly figure that reproduces ``scene``.

    Parameters
    ----------
    scene : Scene
        A rendered scene, e.g. from :meth:`graphcalc.renderer.Renderer.snapshot`.

    Returns
    -------
    plotly.graph_objects.Figure

    Examples
    --------
    >>> fig = scene_to_plotly(workspace.snapshot())  # doctest: +SKIP
    >>> fig.write_image("graph.png")  # doctest: +SKIP
    """
    vp = scene.viewport
    shapes: list[dict[str, Any]] = []
    annotations: list[dict[str, Any]] = []
    traces: list[go.Scatter] = []
    for item in scene.items:
        if isinstance(item, Rect):
            shapes.append(_rect_shape(item))
        elif isinstance(item, Segment):
            shapes.append(_segment_shape(item))
        elif isinstance(item, Label):
            annotations.append(_annotation(item))
        else:
            traces.append(_trace(item))

    fig = go.Figure(data=traces)
    fig.update_layout(
        width=max(int(vp.width), 1),
        height=max(int(vp.height), 1),
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor=scene.background,
        plot_bgcolor=scene.background,
        shapes=shapes,
        annotations=annotations,
        xaxis=dict(range=[0, vp.width], visible=False, fixedrange=True),
        yaxis=dict(range=[vp.height, 0], visible=False, fixedrange=True),
    )
    return fig
