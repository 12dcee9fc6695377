"""Map figures for occurrences, background points and suitability surfaces."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd
import xarray as xr
from matplotlib.colors import ListedColormap
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

from rodent_sdm.raster.extent import Extent

logger = logging.getLogger(__name__)

FIGSIZE = (9, 7)


def _new_map(
    basemap: Optional[gpd.GeoDataFrame] = None,
    extent: Optional[Extent] = None,
) -> Tuple[Figure, plt.Axes]:
    fig, ax = plt.subplots(figsize=FIGSIZE)
    if basemap is not None:
        basemap.plot(ax=ax, facecolor="none", edgecolor="0.4", linewidth=0.6, zorder=3)
    if extent is not None:
        ax.set_xlim(extent.min_lon, extent.max_lon)
        ax.set_ylim(extent.min_lat, extent.max_lat)
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    return fig, ax


def _scatter(ax: plt.Axes, points: pd.DataFrame, **kwargs) -> None:
    ax.scatter(points["longitude"], points["latitude"], zorder=4, **kwargs)


def plot_occurrences(
    occurrences: pd.DataFrame,
    basemap: Optional[gpd.GeoDataFrame] = None,
    extent: Optional[Extent] = None,
    title: Optional[str] = None,
) -> Figure:
    fig, ax = _new_map(basemap, extent)
    _scatter(ax, occurrences, s=12, c="red", label="Occurrences")
    ax.set_title(title or f"Occurrence records (n={len(occurrences)})")
    ax.legend(loc="lower left")
    return fig


def plot_layer(
    stack: xr.Dataset,
    layer: str,
    basemap: Optional[gpd.GeoDataFrame] = None,
    title: Optional[str] = None,
) -> Figure:
    """Preview of one layer of the (cropped) raster stack."""
    fig, ax = _new_map(basemap)
    stack[layer].plot.imshow(ax=ax, cmap="viridis", cbar_kwargs={"label": layer})
    ax.set_title(title or stack[layer].attrs.get("long_name", layer))
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    return fig


def plot_background(
    background: pd.DataFrame,
    occurrences: pd.DataFrame,
    basemap: Optional[gpd.GeoDataFrame] = None,
    extent: Optional[Extent] = None,
) -> Figure:
    fig, ax = _new_map(basemap, extent)
    _scatter(ax, background, s=4, c="0.5", label=f"Pseudo-absences (n={len(background)})")
    _scatter(ax, occurrences, s=12, c="red", label=f"Occurrences (n={len(occurrences)})")
    ax.set_title("Occurrence and pseudo-absence points")
    ax.legend(loc="lower left")
    return fig


def plot_suitability(
    surface: xr.DataArray,
    occurrences: Optional[pd.DataFrame] = None,
    basemap: Optional[gpd.GeoDataFrame] = None,
    title: Optional[str] = None,
) -> Figure:
    fig, ax = _new_map(basemap)
    surface.plot.imshow(
        ax=ax, cmap="viridis", vmin=0.0, vmax=1.0, cbar_kwargs={"label": "Predicted probability"}
    )
    if occurrences is not None:
        _scatter(ax, occurrences, s=6, c="red", alpha=0.6)
    ax.set_title(title or "Habitat suitability")
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    return fig


def plot_binary_suitability(
    binary: xr.DataArray,
    threshold: float,
    occurrences: Optional[pd.DataFrame] = None,
    basemap: Optional[gpd.GeoDataFrame] = None,
    title: Optional[str] = None,
) -> Figure:
    fig, ax = _new_map(basemap)
    cmap = ListedColormap(["#f0f0f0", "#1a9850"])
    binary.plot.imshow(ax=ax, cmap=cmap, vmin=0, vmax=1, add_colorbar=False)
    handles = [
        Patch(facecolor="#1a9850", label="Suitable"),
        Patch(facecolor="#f0f0f0", edgecolor="0.6", label="Not suitable"),
    ]
    if occurrences is not None:
        _scatter(ax, occurrences, s=6, c="red")
        handles.append(
            Line2D([], [], marker="o", linestyle="", color="red", label="Occurrences")
        )
    ax.legend(handles=handles, loc="lower left")
    ax.set_title(title or f"Suitable habitat (p > {threshold:.3f})")
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    return fig


def save_figure(fig: Figure, output_path: Path, dpi: int = 150) -> Path:
    """Save a figure as PNG and close it."""
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.tight_layout()
        fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
        logger.info(f"Saved figure to: {output_path}")
        return output_path
    except Exception as e:
        logger.error(f"Error saving figure {output_path}: {e}", exc_info=True)
        raise
    finally:
        plt.close(fig)
