"""
Application layout classification.

Rules are evaluated top to bottom and the first match wins, so the list
order is the precedence: build output supersedes any checked-in HTML.
"""

import logging
from typing import List, Optional

from ..config import Settings
from ..errors import ClassificationError
from ..source import SourceTree
from .base import AppLayout, LayoutKind, LayoutRule
from .frontend import BuiltOutputRule
from .static import PublicDirRule, RootIndexRule

logger = logging.getLogger(__name__)

__all__ = [
    'AppLayout',
    'LayoutKind',
    'LayoutRule',
    'BuiltOutputRule',
    'PublicDirRule',
    'RootIndexRule',
    'ALL_RULES',
    'classify',
]

# Rules in priority order
ALL_RULES: List[LayoutRule] = [
    BuiltOutputRule(),
    PublicDirRule(),
    RootIndexRule(),
]


def classify(
    tree: SourceTree,
    settings: Optional[Settings] = None,
    rules: Optional[List[LayoutRule]] = None
) -> AppLayout:
    """
    Classify the layout of a source tree.

    Args:
        tree: Application source tree
        settings: Build settings, defaults to an empty environment
        rules: Rules to evaluate, defaults to ALL_RULES

    Returns:
        The first matching AppLayout

    Raises:
        ClassificationError: If no rule matches
    """
    settings = settings or Settings()

    for rule in rules if rules is not None else ALL_RULES:
        layout = rule.detect(tree, settings)
        if layout is not None:
            logger.debug(f"Layout rule {rule.name} matched, document root {layout.document_root}")
            return layout
        logger.debug(f"Layout rule {rule.name} did not match")

    html_files = [path for path in tree.walk() if path.suffix == '.html']
    suggestions = []
    if html_files:
        shown = ', '.join(str(path) for path in html_files[:3])
        suggestions.append(
            f"HTML files were found ({shown}) but none at index.html or public/index.html"
        )
    raise ClassificationError('no supported layout detected', suggestions)
