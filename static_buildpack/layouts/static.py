"""Plain static site rules."""

from pathlib import PurePosixPath
from typing import Optional

from ..config import Settings
from ..source import SourceTree
from .base import AppLayout, LayoutKind, LayoutRule

INDEX_FILE = 'index.html'


class PublicDirRule(LayoutRule):
    name = 'public-dir'

    def detect(self, tree: SourceTree, settings: Settings) -> Optional[AppLayout]:
        if not tree.is_file(f'public/{INDEX_FILE}'):
            return None

        return AppLayout(kind=LayoutKind.PUBLIC_DIR, document_root=PurePosixPath('public'))


class RootIndexRule(LayoutRule):
    name = 'root-index'

    def detect(self, tree: SourceTree, settings: Settings) -> Optional[AppLayout]:
        if not tree.is_file(INDEX_FILE):
            return None

        return AppLayout(kind=LayoutKind.ROOT_INDEX, document_root=PurePosixPath('.'))
