"""Read-only view over an application source tree."""

import json
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Any, Iterator, Optional, Union

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = {'.git', 'node_modules', '__pycache__', '.cache'}


class SourceTree:
    """Read-only access to files below an application root.

    Paths are relative POSIX strings. Anything that resolves outside the
    root, including through symlinks, is reported as missing.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f'SourceTree({str(self.root)!r})'

    def path(self, relative: Union[str, PurePosixPath]) -> Path:
        """Absolute path of ``relative`` below the root (not checked)."""
        return self.root.joinpath(*PurePosixPath(relative).parts)

    def _contained(self, relative: Union[str, PurePosixPath]) -> Optional[Path]:
        candidate = self.path(relative)
        try:
            resolved = candidate.resolve()
            resolved.relative_to(self.root)
        except (OSError, ValueError):
            logger.debug(f"Ignoring {relative}: resolves outside {self.root}")
            return None
        return resolved

    def is_file(self, relative: Union[str, PurePosixPath]) -> bool:
        resolved = self._contained(relative)
        return resolved is not None and resolved.is_file()

    def read_text(self, relative: Union[str, PurePosixPath]) -> Optional[str]:
        """Safely read file contents, None if missing or unreadable."""
        resolved = self._contained(relative)
        if resolved is None or not resolved.is_file():
            return None
        try:
            return resolved.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read {relative}: {e}")
            return None

    def read_json(self, relative: Union[str, PurePosixPath]) -> Optional[Any]:
        """Read and parse a JSON file, None if missing or malformed."""
        content = self.read_text(relative)
        if content is None:
            return None
        try:
            return json.loads(content)
        except ValueError as e:
            logger.debug(f"Could not parse {relative}: {e}")
            return None

    def walk(self, max_depth: int = 3) -> Iterator[PurePosixPath]:
        """Yield relative paths of files, skipping vendored and VCS directories.

        Args:
            max_depth: Maximum number of path components.
        """
        for dirpath, dirnames, filenames in os.walk(self.root):
            relative_dir = PurePosixPath(Path(dirpath).relative_to(self.root).as_posix())
            depth = 0 if relative_dir == PurePosixPath('.') else len(relative_dir.parts)

            # Prune in place so os.walk does not descend
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in EXCLUDED_DIRS and depth + 1 < max_depth
            )

            for name in sorted(filenames):
                if os.path.islink(os.path.join(dirpath, name)):
                    continue
                yield relative_dir / name if depth else PurePosixPath(name)
