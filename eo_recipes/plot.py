"""Plot helpers – time series, grouped bars, choropleths and GIF animations.

All functions draw with matplotlib and return the Axes (or the written
path) so callers can adjust labels or save the figure themselves.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import xarray as xr

logger = logging.getLogger(__name__)


def _axes(ax: Any, figsize: tuple[float, float]) -> Any:
    if ax is not None:
        return ax
    import matplotlib.pyplot as plt

    _, ax = plt.subplots(1, 1, figsize=figsize)
    return ax


def _decorate(ax: Any, title: str | None, xlabel: str | None, ylabel: str | None) -> None:
    if title:
        ax.set_title(title)
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    ax.grid(True, ls="--", lw=0.5, alpha=0.5)


def plot_time_series(
    df: pd.DataFrame,
    *,
    x: str,
    y: str,
    group: str | None = None,
    title: str | None = None,
    xlabel: str | None = None,
    ylabel: str | None = None,
    ax: Any = None,
    figsize: tuple[float, float] = (10.5, 4.6),
) -> Any:
    """Line-and-marker chart of *y* against *x*, one line per *group*."""
    ax = _axes(ax, figsize)
    if group is None:
        data = df.sort_values(x)
        ax.plot(data[x], data[y], marker="o", lw=1.2)
    else:
        for key, part in df.groupby(group, sort=True, observed=True):
            part = part.sort_values(x)
            ax.plot(part[x], part[y], marker="o", lw=1.2, label=str(key))
        ax.legend(title=group, frameon=True)
    _decorate(ax, title, xlabel or x, ylabel or y)
    return ax


def plot_grouped_bars(
    df: pd.DataFrame,
    *,
    x: str,
    y: str,
    group: str,
    title: str | None = None,
    xlabel: str | None = None,
    ylabel: str | None = None,
    ax: Any = None,
    figsize: tuple[float, float] = (10.5, 4.6),
) -> Any:
    """Dodged bar chart: one cluster per *x* value, one bar per *group*."""
    ax = _axes(ax, figsize)
    table = df.pivot_table(index=x, columns=group, values=y, aggfunc="mean", observed=True)
    n_groups = max(len(table.columns), 1)
    width = 0.8 / n_groups
    positions = np.arange(len(table.index))
    for i, col in enumerate(table.columns):
        offset = (i - (n_groups - 1) / 2) * width
        ax.bar(positions + offset, table[col].to_numpy(), width, label=str(col))
    ax.set_xticks(positions)
    ax.set_xticklabels([str(v) for v in table.index])
    ax.legend(title=group, frameon=True)
    _decorate(ax, title, xlabel or x, ylabel or y)
    return ax


def plot_choropleth(
    gdf: Any,
    column: str,
    *,
    cmap: str = "viridis",
    title: str | None = None,
    legend: bool = True,
    ax: Any = None,
    figsize: tuple[float, float] = (10.0, 6.0),
) -> Any:
    """Colour features of a GeoDataFrame by *column*."""
    ax = _axes(ax, figsize)
    gdf.plot(column=column, cmap=cmap, legend=legend, ax=ax, edgecolor="0.3", linewidth=0.3)
    if title:
        ax.set_title(title)
    ax.set_axis_off()
    return ax


def _frame_label(value: Any) -> str:
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).strftime("%Y-%m-%d")
    return str(value)


def animate(
    cube: xr.DataArray,
    path: str | Path,
    *,
    dim: str = "time",
    fps: int = 5,
    vmin: float | None = None,
    vmax: float | None = None,
    cmap: str = "RdYlGn",
    bounce: bool = False,
    title: str = "",
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> Path:
    """Write a GIF with one frame per step of *dim*.

    Each frame is titled with its label (``"2023-06-01"`` or ``"6"``).
    ``bounce=True`` plays the frames forwards then backwards.

    Returns
    -------
    Path
        The written file.
    """
    import matplotlib.pyplot as plt
    from matplotlib.animation import FuncAnimation, PillowWriter

    if dim not in cube.dims:
        raise ValueError(f"Dimension {dim!r} not in cube dims {list(cube.dims)}")
    extra = [d for d in cube.dims if d not in (dim, x_dim, y_dim)]
    if extra:
        raise ValueError(f"animate needs a single-band cube, found extra dimension(s) {extra}")

    cube = cube.transpose(dim, y_dim, x_dim)
    frames = np.asarray(cube.values, dtype=np.float64)
    labels = [_frame_label(v) for v in cube.coords[dim].values]
    order = list(range(len(labels)))
    if bounce and len(order) > 1:
        order = order + order[-2::-1]

    if vmin is None:
        vmin = float(np.nanmin(frames))
    if vmax is None:
        vmax = float(np.nanmax(frames))

    xs = cube.coords[x_dim].values
    ys = cube.coords[y_dim].values
    extent = [float(xs.min()), float(xs.max()), float(ys.min()), float(ys.max())]
    origin = "upper" if ys[0] > ys[-1] else "lower"

    fig, ax = plt.subplots(1, 1, figsize=(6, 6))
    image = ax.imshow(frames[0], vmin=vmin, vmax=vmax, cmap=cmap, extent=extent, origin=origin)
    fig.colorbar(image, ax=ax, shrink=0.8)
    heading = ax.set_title("")

    def _update(i: int):
        image.set_data(frames[i])
        heading.set_text(f"{title} {labels[i]}".strip())
        return image, heading

    anim = FuncAnimation(fig, _update, frames=order, blit=False)
    path = Path(path)
    anim.save(str(path), writer=PillowWriter(fps=fps))
    plt.close(fig)
    logger.info("animate: wrote %d frame(s) to %s", len(order), path)
    return path
