"""Front-end framework build output rule."""

import logging
from pathlib import PurePosixPath
from typing import Optional, Tuple

from ..config import Settings, is_contained_relative_path
from ..errors import ConfigValidationError
from ..source import SourceTree
from .base import AppLayout, LayoutKind, LayoutRule

logger = logging.getLogger(__name__)

MARKER_FILE = 'package.json'
DEFAULT_OUTPUT_DIR = 'build'

# Checked in order, more specific frameworks first
FRAMEWORK_OUTPUT_DIRS: Tuple[Tuple[str, str, str], ...] = (
    ('next', 'nextjs', 'out'),
    ('nuxt', 'nuxtjs', '.output/public'),
    ('nuxt3', 'nuxtjs', '.output/public'),
    ('gatsby', 'gatsby', 'public'),
    ('@sveltejs/kit', 'sveltekit', 'build'),
    ('astro', 'astro', 'dist'),
    ('react-scripts', 'create-react-app', 'build'),
    ('@vue/cli-service', 'vue-cli', 'dist'),
    ('vite', 'vite', 'dist'),
    ('parcel', 'parcel', 'dist'),
)


class BuiltOutputRule(LayoutRule):
    """Detect front-end projects whose build step produces the site."""

    name = 'built-output'

    def detect(self, tree: SourceTree, settings: Settings) -> Optional[AppLayout]:
        """Detect a package manifest with a build script."""
        if not tree.is_file(MARKER_FILE):
            return None

        package_data = tree.read_json(MARKER_FILE)
        if not isinstance(package_data, dict):
            logger.debug(f"{MARKER_FILE} is not a JSON object, not a front-end project")
            return None

        scripts = package_data.get('scripts')
        if not isinstance(scripts, dict) or not scripts.get('build'):
            logger.debug(f"{MARKER_FILE} declares no build script, not a front-end project")
            return None

        framework, output_dir = self._detect_framework(package_data)

        override = settings.output_dir
        if override:
            logger.debug(f"Output directory overridden by BP_STATIC_OUTPUT_DIR: {override}")
            output_dir = override

        if not is_contained_relative_path(output_dir):
            raise ConfigValidationError(
                f"Build output directory must be a relative path inside the app: {output_dir!r}"
            )

        return AppLayout(
            kind=LayoutKind.BUILT_OUTPUT,
            document_root=PurePosixPath(output_dir),
            requires_build=True,
            framework=framework,
            marker=MARKER_FILE,
        )

    def _detect_framework(self, package_data: dict) -> Tuple[str, str]:
        """
        Detect the framework from the manifest's dependencies.

        Returns:
            Tuple of (framework_name, output_dir)
        """
        deps = {}
        for key in ('dependencies', 'devDependencies'):
            section = package_data.get(key)
            if isinstance(section, dict):
                deps.update(section)

        for package, framework, output_dir in FRAMEWORK_OUTPUT_DIRS:
            if package in deps:
                return framework, output_dir

        return 'nodejs', DEFAULT_OUTPUT_DIR
