"""
Layer contribution.

The ``static`` layer holds the rendered nginx.conf and a pointer to the
document root. Content identity is the reuse key: an existing layer is kept
only when its recorded digest and the files on disk both match what would
be written now. Otherwise the layer is rebuilt next to the old one and
swapped in by rename, and its metadata TOML is written last, so a layer
directory without matching metadata is never treated as valid.
"""

import hashlib
import logging
import os
import shlex
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import toml

from .errors import ContributionError
from .server_config import ServerConfig

logger = logging.getLogger(__name__)

LAYER_NAME = 'static'
CONFIG_FILE = 'nginx.conf'
DOCUMENT_ROOT_FILE = 'document-root'
DOCUMENT_ROOT_ENV = 'STATIC_DOCUMENT_ROOT'
REFRESH_SCRIPT = 'exec.d/refresh-mtimes'

# relative path -> (content, file mode)
LayerFiles = Dict[str, Tuple[bytes, int]]


@dataclass(frozen=True)
class Layer:
    """A contributed layer on disk."""

    name: str
    path: Path
    metadata_path: Path
    sha256: str
    launch: bool = True
    build: bool = True
    cache: bool = True
    reused: bool = False

    @property
    def config_path(self) -> Path:
        return self.path / CONFIG_FILE


def content_digest(files: LayerFiles) -> str:
    """sha256 over every file's relative path and bytes, in path order."""
    digest = hashlib.sha256()
    for relative in sorted(files):
        content, _mode = files[relative]
        digest.update(relative.encode('utf-8'))
        digest.update(b'\0')
        digest.update(content)
        digest.update(b'\0')
    return digest.hexdigest()


def refresh_script(document_root: Path) -> str:
    """exec.d script that gives served files a real modification time at launch.

    Exported image files all carry the same normalized timestamp, which
    would otherwise be served as every file's Last-Modified.
    """
    return (
        '#!/bin/sh\n'
        f'find {shlex.quote(str(document_root))} -type f -exec touch -c {{}} + 2>/dev/null || true\n'
    )


def _atomic_write_text(path: Path, text: str) -> None:
    # Write to temporary file first, then move to prevent corruption
    temp_file = path.with_name(f'.{path.name}.tmp')
    try:
        temp_file.write_text(text, encoding='utf-8')
        temp_file.replace(path)
    except OSError:
        # Clean up temp file if something goes wrong
        if temp_file.exists():
            temp_file.unlink()
        raise


class LayerContributor:
    """Writes the static layer into the lifecycle's layers directory."""

    def __init__(self, layers_dir: Path, name: str = LAYER_NAME):
        self.layers_dir = Path(layers_dir)
        self.name = name
        self.layer_path = self.layers_dir / name
        self.metadata_path = self.layers_dir / f'{name}.toml'

    def layer_files(self, server_config: ServerConfig, document_root: Path) -> LayerFiles:
        """Files the layer must contain, keyed by relative path."""
        document_root = str(document_root)
        return {
            CONFIG_FILE: (server_config.text.encode('utf-8'), 0o644),
            DOCUMENT_ROOT_FILE: (f'{document_root}\n'.encode('utf-8'), 0o644),
            f'env.launch/{DOCUMENT_ROOT_ENV}.override': (document_root.encode('utf-8'), 0o644),
            REFRESH_SCRIPT: (refresh_script(Path(document_root)).encode('utf-8'), 0o755),
        }

    def contribute(self, server_config: ServerConfig, document_root: Path) -> Layer:
        """
        Write the layer, or reuse it when its content is unchanged.

        Args:
            server_config: Rendered nginx configuration
            document_root: Absolute document root

        Returns:
            The contributed Layer

        Raises:
            ContributionError: On any filesystem failure
        """
        files = self.layer_files(server_config, document_root)
        digest = content_digest(files)

        try:
            self.layers_dir.mkdir(parents=True, exist_ok=True)
            self._sweep_stale_dirs()

            if self._can_reuse(digest, files):
                logger.info(f"Reusing cached layer {self.name} ({digest[:12]})")
                # A restored <layer>.toml carries only [metadata], never [types]
                self._write_metadata(digest, server_config)
                return self._layer(digest, reused=True)

            logger.info(f"Contributing layer {self.name} ({digest[:12]})")

            # Stale metadata goes first so an interrupted swap is never valid
            if self.metadata_path.exists():
                self.metadata_path.unlink()

            self._replace_layer_dir(files)
            self._write_metadata(digest, server_config)

        except OSError as e:
            path = e.filename or self.layer_path
            raise ContributionError(f"Failed to write layer {self.name} at {path}: {e.strerror or e}",
                                    path=str(path)) from e

        return self._layer(digest, reused=False)

    def write_launch_metadata(self, layer: Layer) -> Path:
        """
        Declare the default web process in ``<layers>/launch.toml``.

        Raises:
            ContributionError: If the file cannot be written
        """
        launch_path = self.layers_dir / 'launch.toml'
        launch = {
            'processes': [{
                'type': 'web',
                'command': ['nginx'],
                'args': ['-p', str(layer.path), '-c', str(layer.config_path)],
                'default': True,
            }]
        }

        try:
            _atomic_write_text(launch_path, toml.dumps(launch))
        except OSError as e:
            raise ContributionError(f"Failed to write {launch_path}: {e.strerror or e}",
                                    path=str(launch_path)) from e

        logger.debug(f"Declared web process in {launch_path}")
        return launch_path

    def _layer(self, digest: str, reused: bool) -> Layer:
        return Layer(name=self.name, path=self.layer_path, metadata_path=self.metadata_path,
                     sha256=digest, reused=reused)

    def _read_metadata(self) -> Optional[dict]:
        if not self.metadata_path.is_file():
            return None
        try:
            return toml.loads(self.metadata_path.read_text(encoding='utf-8'))
        except toml.TomlDecodeError as e:
            logger.debug(f"Ignoring unreadable {self.metadata_path}: {e}")
            return None

    def _can_reuse(self, digest: str, files: LayerFiles) -> bool:
        """True if the recorded digest and the files on disk, modes included, all match."""
        stored = self._read_metadata()
        if not stored or stored.get('metadata', {}).get('sha256') != digest:
            return False
        if not self.layer_path.is_dir():
            return False

        on_disk: LayerFiles = {}
        for file in self.layer_path.rglob('*'):
            if file.is_file():
                relative = file.relative_to(self.layer_path).as_posix()
                on_disk[relative] = (file.read_bytes(), file.stat().st_mode & 0o777)

        if set(on_disk) != set(files):
            return False
        for relative, (_content, mode) in files.items():
            if on_disk[relative][1] != mode:
                logger.debug(f"Mode of {relative} changed to {oct(on_disk[relative][1])}")
                return False
        return content_digest(on_disk) == digest

    def _sweep_stale_dirs(self) -> None:
        """Remove temporary directories left by an interrupted run."""
        for pattern in (f'.{self.name}.tmp-*', f'.{self.name}.old-*'):
            for stale in self.layers_dir.glob(pattern):
                logger.debug(f"Removing stale {stale}")
                shutil.rmtree(stale)

    def _replace_layer_dir(self, files: LayerFiles) -> None:
        temp_dir = Path(tempfile.mkdtemp(prefix=f'.{self.name}.tmp-', dir=self.layers_dir))
        try:
            for relative, (content, mode) in files.items():
                target = temp_dir / relative
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
                os.chmod(target, mode)
            os.chmod(temp_dir, 0o755)

            backup = None
            if self.layer_path.exists():
                backup = temp_dir.with_name(temp_dir.name.replace('.tmp-', '.old-', 1))
                os.rename(self.layer_path, backup)

            os.rename(temp_dir, self.layer_path)
        except OSError:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
            raise

        if backup is not None:
            shutil.rmtree(backup)

    def _write_metadata(self, digest: str, server_config: ServerConfig) -> None:
        metadata = {
            'types': {'launch': True, 'build': True, 'cache': True},
            'metadata': {
                'sha256': digest,
                'config_sha256': server_config.sha256,
                'document_root': str(server_config.document_root),
                'port': server_config.port,
                'layout': server_config.layout.kind.value,
            },
        }
        _atomic_write_text(self.metadata_path, toml.dumps(metadata))
