"""Base layout rule interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional

from ..config import Settings
from ..source import SourceTree


class LayoutKind(Enum):
    """Supported application layouts."""

    ROOT_INDEX = 'root-index'
    PUBLIC_DIR = 'public-dir'
    BUILT_OUTPUT = 'built-output'


@dataclass(frozen=True)
class AppLayout:
    """Result of classifying a source tree."""

    kind: LayoutKind
    document_root: PurePosixPath
    requires_build: bool = False
    framework: Optional[str] = None
    marker: Optional[str] = None

    @property
    def is_single_page_app(self) -> bool:
        return self.kind is LayoutKind.BUILT_OUTPUT

    def resolve_document_root(self, tree: SourceTree) -> Path:
        """Absolute document root below the tree root."""
        return tree.path(self.document_root)


class LayoutRule(ABC):
    """Base rule class: one predicate mapped to one layout."""

    name: str = 'base'

    @abstractmethod
    def detect(self, tree: SourceTree, settings: Settings) -> Optional[AppLayout]:
        """
        Check whether this rule applies to the tree.

        Args:
            tree: Application source tree
            settings: Build settings

        Returns:
            AppLayout if the rule matches, None otherwise
        """
        pass
