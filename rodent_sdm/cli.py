# Command Line Interface for rodent-sdm
import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from rodent_sdm.errors import SDMError
from rodent_sdm.utils.logging_utils import setup_logging

app = typer.Typer(
    name="rodent-sdm",
    help="Bioclimatic species distribution model for rodent occurrence data",
    add_completion=False,
)

logger = logging.getLogger(__name__)


@app.command()
def run(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="YAML file overriding the packaged default settings.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")] = False,
) -> None:
    """
    Fits the SDM: loads occurrences and bioclim layers, samples pseudo-absences, fits a
    binomial GLM, evaluates it on the held-out fold and writes maps and statistics.
    """
    from rodent_sdm.pipeline import run_pipeline
    from rodent_sdm.utils.io import load_config

    setup_logging(verbose=verbose)
    try:
        config = load_config(config_path)
        result = run_pipeline(config)
    except (SDMError, FileNotFoundError, ValueError) as e:
        logger.error(f"SDM run failed: {e}")
        raise typer.Exit(code=1)

    for name, value in result.evaluation.to_dict().items():
        typer.echo(f"{name}: {value}")


@app.command()
def layers(
    layer_dir: Annotated[
        Path,
        typer.Argument(help="Directory of bioclim rasters.", exists=True, file_okay=False, resolve_path=True),
    ],
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")] = False,
) -> None:
    """Shows which file is used for each bioclim layer."""
    from rodent_sdm.raster.io import bioclim_descriptions, discover_layer_files

    setup_logging(verbose=verbose)
    try:
        layer_files = discover_layer_files(layer_dir)
    except SDMError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    descriptions = bioclim_descriptions()
    for name, path in layer_files.items():
        typer.echo(f"{name:>6}  {path.name:<30} {descriptions[name]}")


if __name__ == "__main__":
    app()
