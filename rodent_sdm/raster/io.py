"""Loading of bioclimatic layers into an aligned raster stack."""

import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import numpy as np
import xarray as xr
import rioxarray as rxr

from rodent_sdm.errors import LayerIdentityError, RasterAlignmentError

logger = logging.getLogger(__name__)

N_BIOCLIM_LAYERS = 19

BIOCLIM_LAYERS: List[str] = [f"bio{i}" for i in range(1, N_BIOCLIM_LAYERS + 1)]

LAYER_SUFFIXES = (".tif", ".tiff", ".bil")

_TRAILING_INDEX = re.compile(r"(\d+)$")


def bioclim_descriptions() -> Dict[str, str]:
    return {
        "bio1": "Annual Mean Temperature",
        "bio2": "Mean Diurnal Range",
        "bio3": "Isothermality",
        "bio4": "Temperature Seasonality",
        "bio5": "Max Temperature of Warmest Month",
        "bio6": "Min Temperature of Coldest Month",
        "bio7": "Temperature Annual Range",
        "bio8": "Mean Temperature of Wettest Quarter",
        "bio9": "Mean Temperature of Driest Quarter",
        "bio10": "Mean Temperature of Warmest Quarter",
        "bio11": "Mean Temperature of Coldest Quarter",
        "bio12": "Annual Precipitation",
        "bio13": "Precipitation of Wettest Month",
        "bio14": "Precipitation of Driest Month",
        "bio15": "Precipitation Seasonality",
        "bio16": "Precipitation of Wettest Quarter",
        "bio17": "Precipitation of Driest Quarter",
        "bio18": "Precipitation of Warmest Quarter",
        "bio19": "Precipitation of Coldest Quarter",
    }


def parse_layer_index(path: Union[str, Path]) -> Optional[int]:
    """Layer number encoded at the end of a file stem, e.g. 'wc2.1_10m_bio_12.tif' -> 12."""
    match = _TRAILING_INDEX.search(Path(path).stem)
    return int(match.group(1)) if match else None


def discover_layer_files(
    layer_dir: Union[str, Path],
    n_layers: int = N_BIOCLIM_LAYERS,
) -> Dict[str, Path]:
    """
    Maps bioclim layer names to the files of a directory, using the number in each file name.

    Every index 1..n_layers must appear exactly once, otherwise the identity of the layers
    is ambiguous and LayerIdentityError is raised.
    """
    layer_dir = Path(layer_dir)
    if not layer_dir.is_dir():
        raise FileNotFoundError(f"Layer directory not found at {layer_dir}")

    files = sorted(p for p in layer_dir.iterdir() if p.suffix.lower() in LAYER_SUFFIXES)
    by_index: Dict[int, List[Path]] = {}
    for path in files:
        index = parse_layer_index(path)
        if index is None:
            logger.debug(f"Ignoring {path.name}: no layer number in file name")
            continue
        by_index.setdefault(index, []).append(path)

    duplicated = {i: [p.name for p in paths] for i, paths in by_index.items() if len(paths) > 1}
    if duplicated:
        raise LayerIdentityError(f"Several files claim the same layer number: {duplicated}")

    expected = set(range(1, n_layers + 1))
    found = set(by_index)
    if found != expected:
        missing = sorted(expected - found)
        unexpected = sorted(found - expected)
        raise LayerIdentityError(
            f"Expected layer numbers 1..{n_layers} in {layer_dir}; "
            f"missing {missing}, unexpected {unexpected}."
        )

    return {f"bio{i}": by_index[i][0] for i in sorted(by_index)}


def resolve_layer_manifest(
    layer_dir: Union[str, Path],
    manifest: Mapping[str, Union[str, Path]],
) -> Dict[str, Path]:
    """Resolves an explicit {layer name: file} mapping against the layer directory."""
    if len(manifest) == 0:
        raise LayerIdentityError("Layer manifest is empty.")
    resolved = {}
    for name, filename in manifest.items():
        path = Path(filename)
        if not path.is_absolute():
            path = Path(layer_dir) / path
        if not path.exists():
            raise FileNotFoundError(f"Layer '{name}' not found at {path}")
        resolved[str(name)] = path
    return resolved


def load_layer(path: Union[str, Path]) -> xr.DataArray:
    """Opens a single-band raster with nodata masked to NaN."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Raster not found at {path}")
    data = rxr.open_rasterio(path, masked=True)
    if not isinstance(data, xr.DataArray):
        raise ValueError(f"Expected DataArray from {path}, got {type(data)}")
    if data.sizes.get("band", 1) != 1:
        raise LayerIdentityError(f"{path.name} has {data.sizes['band']} bands, expected 1.")
    return data.squeeze("band", drop=True)


def check_alignment(layers: Mapping[str, xr.DataArray]) -> None:
    """Raises RasterAlignmentError unless all layers share shape, transform and CRS."""
    names = list(layers)
    reference = layers[names[0]]
    for name in names[1:]:
        layer = layers[name]
        if layer.shape != reference.shape:
            raise RasterAlignmentError(
                f"Layer '{name}' has shape {layer.shape}, '{names[0]}' has {reference.shape}."
            )
        if not layer.rio.transform().almost_equals(reference.rio.transform()):
            raise RasterAlignmentError(f"Layer '{name}' is not on the grid of '{names[0]}'.")
        if layer.rio.crs != reference.rio.crs:
            raise RasterAlignmentError(
                f"Layer '{name}' has CRS {layer.rio.crs}, '{names[0]}' has {reference.rio.crs}."
            )


def stack_layers(layers: Mapping[str, xr.DataArray]) -> xr.Dataset:
    """Combines aligned single-band layers into one Dataset, in the given order."""
    if len(layers) == 0:
        raise LayerIdentityError("No layers to stack.")
    check_alignment(layers)
    reference = next(iter(layers.values()))
    crs = reference.rio.crs

    data_vars = {}
    for name, layer in layers.items():
        layer = layer.assign_coords(x=reference.x, y=reference.y).astype("float64")
        layer.attrs = {"long_name": bioclim_descriptions().get(name, name)}
        data_vars[name] = layer
    stack = xr.Dataset(data_vars)
    if crs is not None:
        stack = stack.rio.write_crs(crs)
    return stack


def check_resolution(stack: xr.Dataset, resolution_arcmin: Optional[float]) -> None:
    """Warns when a geographic stack is not at the expected arc-minute resolution."""
    if resolution_arcmin is None:
        return
    crs = stack.rio.crs
    if crs is not None and not crs.is_geographic:
        logger.warning(f"Raster stack is not in geographic coordinates ({crs}).")
        return
    res_x, res_y = stack.rio.resolution()
    expected = resolution_arcmin / 60
    if not (np.isclose(abs(res_x), expected) and np.isclose(abs(res_y), expected)):
        logger.warning(
            f"Raster resolution {abs(res_x) * 60:.3f}' x {abs(res_y) * 60:.3f}' "
            f"differs from the expected {resolution_arcmin}'."
        )


def load_bioclim_stack(
    layer_dir: Union[str, Path],
    manifest: Optional[Mapping[str, Union[str, Path]]] = None,
    resolution_arcmin: Optional[float] = 10,
) -> xr.Dataset:
    """
    Loads the bioclimatic layers into an aligned xarray Dataset.

    Args:
        layer_dir: Directory holding one single-band raster per layer.
        manifest: Optional explicit {layer name: file} mapping. Preferred over file-name parsing.
        resolution_arcmin: Expected cell size; a mismatch is logged, not fatal.

    Returns:
        Dataset with one (y, x) variable per layer and missing cells as NaN.
    """
    if manifest:
        layer_files = resolve_layer_manifest(layer_dir, manifest)
    else:
        layer_files = discover_layer_files(layer_dir)

    for name, path in layer_files.items():
        logger.debug(f"{name} <- {path.name}")
    layers = {name: load_layer(path) for name, path in layer_files.items()}

    stack = stack_layers(layers)
    check_resolution(stack, resolution_arcmin)
    logger.info(
        f"Loaded {len(stack.data_vars)} layers of {stack.rio.width}x{stack.rio.height} cells "
        f"from {layer_dir}"
    )
    return stack
