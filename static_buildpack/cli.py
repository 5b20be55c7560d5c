"""Command line entry points for the buildpack executables.

``bin/detect`` and ``bin/build`` exec into ``static-buildpack detect`` and
``static-buildpack build``. Paths are taken from positional arguments or the
``CNB_*`` variables the lifecycle sets.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import DEFAULT_LOG_LEVEL, Settings
from .errors import (
    ClassificationError,
    ConfigValidationError,
    ErrorHandler,
    StaticBuildpackError,
)
from .layouts import classify
from .log import setup_logging
from .phases import DETECT_FAIL, build as run_build, detect as run_detect
from .server_config import synthesize
from .source import SourceTree

console = Console()
error_handler = ErrorHandler()

path_type = click.Path(path_type=Path)


def load_settings(platform: Optional[Path]) -> Settings:
    """Read settings and configure logging from them."""
    settings = Settings.from_environment(platform_dir=platform)
    try:
        setup_logging(settings.log_level)
    except ConfigValidationError:
        setup_logging(DEFAULT_LOG_LEVEL)
        raise
    return settings


def fail(error: Exception, context: str, exit_code: int = 1) -> None:
    """Display an error panel and exit."""
    error_handler.display_error(error, context)
    sys.exit(exit_code)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Static site buildpack."""
    pass


@main.command()
@click.argument('platform', required=False, type=path_type, envvar='CNB_PLATFORM_DIR')
@click.argument('plan', required=False, type=path_type, envvar='CNB_BUILD_PLAN_PATH')
@click.option('--app-dir', default='.', type=path_type, help='Application source directory')
def detect(platform: Optional[Path], plan: Optional[Path], app_dir: Path) -> None:
    """Decide whether this buildpack applies and write the build plan."""
    try:
        settings = load_settings(platform)
        result = run_detect(app_dir, settings, plan)
    except ClassificationError as e:
        # Declining is not an error, the lifecycle tries the next group
        console.print(f"[yellow]Static buildpack not applicable:[/yellow] {e.reason}")
        for suggestion in e.suggestions:
            console.print(f"  {suggestion}")
        sys.exit(DETECT_FAIL)
    except StaticBuildpackError as e:
        fail(e, 'Detecting application layout')

    requirements = ', '.join(result.build_plan.requirement_names())
    console.print(f"[green]Detected[/green] {result.layout.kind.value} (requires {requirements})")


@main.command()
@click.argument('layers', required=False, type=path_type, envvar='CNB_LAYERS_DIR')
@click.argument('platform', required=False, type=path_type, envvar='CNB_PLATFORM_DIR')
@click.argument('plan', required=False, type=path_type, envvar='CNB_BP_PLAN_PATH')
@click.option('--app-dir', default='.', type=path_type, help='Application source directory')
def build(layers: Optional[Path], platform: Optional[Path], plan: Optional[Path], app_dir: Path) -> None:
    """Generate the nginx configuration and contribute the static layer."""
    if layers is None:
        raise click.UsageError('LAYERS is required (or set CNB_LAYERS_DIR)')

    console.print(f"[bold]Static Buildpack[/bold] {__version__}")

    try:
        settings = load_settings(platform)
        result = run_build(app_dir, layers, settings, plan)
    except StaticBuildpackError as e:
        fail(e, 'Building static layer')

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Layout", result.layout.kind.value)
    table.add_row("Document root", str(result.server_config.document_root))
    table.add_row("Port", str(result.server_config.port))
    table.add_row("Layer", f"{result.layer.path} ({'reused' if result.layer.reused else 'written'})")
    console.print(table)


@main.command()
@click.option('--app-dir', default='.', type=path_type, help='Application source directory')
@click.option('--platform', type=path_type, envvar='CNB_PLATFORM_DIR', help='Platform directory')
def render(app_dir: Path, platform: Optional[Path]) -> None:
    """Print the nginx configuration for a source tree."""
    try:
        settings = load_settings(platform)
        tree = SourceTree(app_dir)
        layout = classify(tree, settings)
        server_config = synthesize(layout, layout.resolve_document_root(tree), settings)
    except StaticBuildpackError as e:
        fail(e, 'Rendering nginx configuration')

    click.echo(server_config.text, nl=False)


if __name__ == '__main__':
    main()
