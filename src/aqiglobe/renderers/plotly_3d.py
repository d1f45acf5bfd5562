"""Plotly 3D interactive globe renderer.

Draws the globe as a shaded sphere with one marker per hotspot. Both are
rotated by the current RotationState, so the picture matches the simulated
spin and the user's drag offsets. Each marker carries its store key in
``customdata`` for hover/click hit-testing.
"""

import numpy as np
import plotly.graph_objects as go

from aqiglobe.geo import MARKER_ALTITUDE, project_grid, project_many, to_view
from aqiglobe.models import HotspotRecord, RotationState, StoreSnapshot

_BG = "#000000"
_OCEAN = "#0b2a4a"
_LAND = "#1f5f8b"


def _rgb(color: tuple[float, float, float]) -> str:
    r, g, b = (int(round(255 * c)) for c in color)
    return f"rgb({r},{g},{b})"


def _marker_size(record: HotspotRecord) -> float:
    # size_weight is 0.3 / 0.6 / 1.0 → 11 / 17 / 24 px
    return 5 + 19 * record.size_weight


def _sphere_trace(radius: float, rotation: RotationState, resolution: int = 48) -> go.Surface:
    lat = np.linspace(-90.0, 90.0, resolution)
    lng = np.linspace(-180.0, 180.0, resolution * 2)
    lng_grid, lat_grid = np.meshgrid(lng, lat)
    points = project_grid(lat_grid, lng_grid, radius).reshape(-1, 3)
    view = to_view(points, rotation)
    shape = lat_grid.shape
    # Shade by latitude band so the spin is visible without a texture
    shade = np.cos(np.radians(lat_grid) * 3.0)
    return go.Surface(
        x=view[:, 0].reshape(shape),
        y=-view[:, 2].reshape(shape),
        z=view[:, 1].reshape(shape),
        surfacecolor=shade,
        colorscale=[[0.0, _OCEAN], [1.0, _LAND]],
        showscale=False,
        hoverinfo="skip",
        opacity=1.0,
        name="globe",
    )


def render_globe_figure(
    snapshot: StoreSnapshot,
    rotation: RotationState,
    radius: float = 5.0,
) -> go.Figure:
    """Render a store snapshot on the globe as a Plotly figure.

    View-space (x, y, z) maps to Plotly (x, -z, y) so north is up.

    Args:
        snapshot: Hotspots to draw.
        rotation: Globe orientation for this frame.
        radius: Globe radius in scene units.

    Returns:
        Plotly Figure object.
    """
    records = snapshot.values()
    traces: list[go.BaseTraceType] = [_sphere_trace(radius, rotation)]

    if records:
        points = to_view(
            project_many((r.coordinate for r in records), radius * MARKER_ALTITUDE),
            rotation,
        )
        traces.append(
            go.Scatter3d(
                x=points[:, 0],
                y=-points[:, 2],
                z=points[:, 1],
                mode="markers",
                marker=dict(
                    size=[_marker_size(r) for r in records],
                    color=[_rgb(r.color_weight) for r in records],
                    opacity=0.85,
                    line=dict(width=0),
                ),
                customdata=[r.key for r in records],
                text=[
                    f"<b>{r.display_name}</b><br>AQI {r.aqi:.0f} ({r.category.value})"
                    f"<br>{r.coordinate}<br>{r.source_kind.value}"
                    for r in records
                ],
                hovertemplate="%{text}<extra></extra>",
                name="hotspots",
            )
        )

    axis = dict(visible=False, range=[-radius * 1.2, radius * 1.2])
    fig = go.Figure(data=traces)
    fig.update_layout(
        paper_bgcolor=_BG,
        plot_bgcolor=_BG,
        showlegend=False,
        margin=dict(l=0, r=0, t=0, b=0),
        scene=dict(
            xaxis=axis,
            yaxis=axis,
            zaxis=axis,
            aspectmode="cube",
            bgcolor=_BG,
            # Viewer sits on view-space +Z, which maps to Plotly -y
            camera=dict(eye=dict(x=0.0, y=-1.8, z=0.0), up=dict(x=0, y=0, z=1)),
            dragmode=False,
        ),
    )
    return fig
