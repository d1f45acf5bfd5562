"""Matplotlib static PNG renderer — orthographic view of the globe's visible hemisphere."""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from matplotlib.patches import Circle

from aqiglobe.geo import MARKER_ALTITUDE, project_many, to_view
from aqiglobe.models import RotationState, StoreSnapshot

_ROOT = Path(__file__).parent.parent.parent.parent


def render_static_chart(
    snapshot: StoreSnapshot,
    rotation: RotationState,
    chart_size: int = 8,
) -> Figure:
    """Render a snapshot as a static orthographic globe image.

    The viewer looks down view-space +Z; hotspots on the far hemisphere
    (z < 0) are hidden.

    Args:
        snapshot: Hotspots to draw.
        rotation: Globe orientation.
        chart_size: Output image size in inches.

    Returns:
        matplotlib Figure object.
    """
    fig, ax = plt.subplots(figsize=(chart_size, chart_size))
    fig.patch.set_facecolor("black")
    ax.set_facecolor("black")

    ax.add_patch(Circle((0, 0), 1, color="#0b2a4a", fill=True, zorder=0))
    ax.add_patch(Circle((0, 0), 1, color="#1f5f8b", fill=False, linewidth=1, zorder=1))

    records = snapshot.values()
    points = to_view(project_many((r.coordinate for r in records), MARKER_ALTITUDE), rotation)
    visible = [(r, p) for r, p in zip(records, points) if p[2] >= 0]
    if visible:
        xy = np.array([p[:2] for _, p in visible])
        ax.scatter(
            xy[:, 0],
            xy[:, 1],
            s=[600 * r.size_weight for r, _ in visible],
            c=[r.color_weight for r, _ in visible],
            alpha=0.75,
            linewidths=0,
            zorder=2,
        )
        for record, (x, y, _) in visible:
            ax.annotate(
                f"{record.display_name} {record.aqi:.0f}",
                (x, y),
                xytext=(6, 6),
                textcoords="offset points",
                color="#dddddd",
                fontsize=8,
                zorder=3,
            )

    ax.set_xlim(-1.1, 1.1)
    ax.set_ylim(-1.1, 1.1)
    ax.set_aspect("equal")
    ax.axis("off")

    return fig


def save_static_chart(
    snapshot: StoreSnapshot,
    rotation: RotationState,
    output_path: Path | None = None,
    label: str = "globe",
) -> Path:
    """Save a snapshot as a PNG file.

    Args:
        snapshot: Hotspots to draw.
        rotation: Globe orientation.
        output_path: Destination path. Auto-generated under results/ if None.
        label: Filename stem used when output_path is None.

    Returns:
        Path to the saved file.
    """
    if output_path is None:
        filename = f"{label}__seq{snapshot.applied_sequence}.png".replace(" ", "_")
        output_path = _ROOT / "results" / filename

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_static_chart(snapshot, rotation)
    fig.savefig(output_path, facecolor="black")
    plt.close(fig)
    return output_path
