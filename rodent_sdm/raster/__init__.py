from .extent import Extent, compute_extent, expand_extent, crop_to_extent
from .io import BIOCLIM_LAYERS, discover_layer_files, load_bioclim_stack, stack_layers
from .utils import valid_cell_mask, points_to_cells

__all__ = [
    "Extent",
    "compute_extent",
    "expand_extent",
    "crop_to_extent",
    "BIOCLIM_LAYERS",
    "discover_layer_files",
    "load_bioclim_stack",
    "stack_layers",
    "valid_cell_mask",
    "points_to_cells",
]
