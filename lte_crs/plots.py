# lte_crs/plots.py
from pathlib import Path
from typing import Optional

import numpy as np

import os, matplotlib
# Prevent GUI popups unless explicitly allowed
if not os.environ.get("ALLOW_GUI_PLOTS", ""):
    matplotlib.use("Agg")  # non-interactive backend (PNG only)

import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch

# index 0 = no CRS, 1..4 = ports 0..3
_PORT_COLOURS = ["#f4f4f4", "#d62728", "#1f77b4", "#2ca02c", "#ff7f0e"]


def plot_crs_grid(
    port_grid: np.ndarray,
    title: str = "CRS resource elements",
    save_path: Optional[str | Path] = None,
    show: bool = False,
) -> Optional[Path]:
    """
    port_grid: [N_symb, K] int grid from mapping.crs_port_grid()
      (-1 = no CRS, otherwise the antenna port).
    Draws OFDM symbol on x and subcarrier on y, one colour per port.
    """
    grid = np.asarray(port_grid)
    if grid.ndim != 2:
        raise ValueError(f"port_grid must be 2-D [N_symb, K]; got shape {grid.shape}")
    S, K = grid.shape
    out = Path(save_path) if save_path else None
    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(4 + 0.3 * S, min(12.0, 2 + 0.08 * K)), dpi=130)
    ax.imshow(grid.T + 1, origin="lower", aspect="auto", interpolation="nearest",
              cmap=ListedColormap(_PORT_COLOURS), vmin=0, vmax=len(_PORT_COLOURS) - 1,
              extent=(-0.5, S - 0.5, -0.5, K - 0.5))
    ax.set_xticks(np.arange(S))
    ax.set_xlabel("OFDM symbol l")
    ax.set_ylabel("Subcarrier k")
    ax.set_title(title)

    ports = sorted(int(p) for p in np.unique(grid) if p >= 0)
    if ports:
        handles = [Patch(color=_PORT_COLOURS[p + 1], label=f"port {p}") for p in ports]
        ax.legend(handles=handles, loc="upper right", fontsize=8)
    fig.tight_layout()

    if out is not None:
        fig.savefig(out, bbox_inches="tight")
    if show:
        plt.show()
    plt.close(fig)
    return out
