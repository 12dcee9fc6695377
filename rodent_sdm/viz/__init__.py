from .maps import (
    plot_occurrences,
    plot_layer,
    plot_background,
    plot_suitability,
    plot_binary_suitability,
    save_figure,
)

__all__ = [
    "plot_occurrences",
    "plot_layer",
    "plot_background",
    "plot_suitability",
    "plot_binary_suitability",
    "save_figure",
]
