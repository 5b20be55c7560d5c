"""
Detect and build phase entry points.

Detect: classify -> plan -> write plan. A tree without a supported layout
declines with exit code 100 so the lifecycle can try other groups.

Build: classify -> synthesize -> contribute -> declare the web process.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import Settings
from .layers import Layer, LayerContributor
from .layouts import AppLayout, classify
from .plan import BuildPlan, plan, read_buildpack_plan, write_plan
from .server_config import ServerConfig, synthesize
from .source import SourceTree

logger = logging.getLogger(__name__)

DETECT_FAIL = 100


@dataclass(frozen=True)
class DetectResult:
    layout: AppLayout
    build_plan: BuildPlan


@dataclass(frozen=True)
class BuildResult:
    layout: AppLayout
    server_config: ServerConfig
    layer: Layer
    launch_path: Path


def detect(app_dir: Path, settings: Settings, plan_path: Optional[Path] = None) -> DetectResult:
    """
    Run the detect phase.

    Args:
        app_dir: Application source directory
        settings: Build settings
        plan_path: Where to write the build plan, if given

    Returns:
        DetectResult with the layout and plan

    Raises:
        ClassificationError: If no supported layout is present
    """
    tree = SourceTree(app_dir)
    layout = classify(tree, settings)
    build_plan = plan(layout)

    if plan_path is not None:
        write_plan(build_plan, plan_path)

    logger.info(f"Detected {layout.kind.value} layout, document root {layout.document_root}")
    return DetectResult(layout=layout, build_plan=build_plan)


def build(app_dir: Path, layers_dir: Path, settings: Settings,
          plan_path: Optional[Path] = None) -> BuildResult:
    """
    Run the build phase.

    Args:
        app_dir: Application source directory
        layers_dir: Lifecycle layers directory for this buildpack
        settings: Build settings
        plan_path: Resolved buildpack plan, logged for diagnostics

    Returns:
        BuildResult describing the contributed layer

    Raises:
        ClassificationError, ConfigValidationError, ConfigSynthesisError, ContributionError
    """
    if plan_path is not None:
        logger.debug(f"Buildpack plan entries: {', '.join(read_buildpack_plan(plan_path)) or 'none'}")

    settings.validate()

    tree = SourceTree(app_dir)
    layout = classify(tree, settings)
    document_root = layout.resolve_document_root(tree)

    if layout.framework:
        logger.info(f"Serving {layout.framework} build output from {document_root}")
    else:
        logger.info(f"Serving static files from {document_root}")

    server_config = synthesize(layout, document_root, settings)

    contributor = LayerContributor(layers_dir)
    layer = contributor.contribute(server_config, document_root)
    launch_path = contributor.write_launch_metadata(layer)

    return BuildResult(layout=layout, server_config=server_config, layer=layer,
                       launch_path=launch_path)
