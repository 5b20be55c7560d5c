"""
nginx configuration synthesis.

The configuration is a pure function of the layout, the document root, the
port and the cache policy. Rendering the same inputs twice yields the same
bytes: the template carries no timestamps and the MIME table is sorted.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import Settings
from .errors import ConfigSynthesisError
from .layouts import AppLayout
from .mime_types import DEFAULT_TYPE, sorted_mime_types

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / 'templates'
TEMPLATE_NAME = 'nginx.conf.j2'


@dataclass(frozen=True)
class CachePolicy:
    """Response caching rules, uniform for every served file.

    Clients may keep a copy but must revalidate it, which they do with
    If-Modified-Since against the file's modification time. ETags are
    disabled because content hashes are not stable across rebuilds.
    """

    cache_control: str = 'public, max-age=0, must-revalidate'
    etag: bool = False
    if_modified_since: str = 'exact'


CACHE_POLICY = CachePolicy()


@dataclass(frozen=True)
class ServerConfig:
    """Rendered nginx configuration and the inputs it came from."""

    text: str
    document_root: Path
    port: int
    layout: AppLayout

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.text.encode('utf-8')).hexdigest()


def _jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def synthesize(
    layout: AppLayout,
    document_root: Path,
    settings: Settings,
    cache_policy: CachePolicy = CACHE_POLICY
) -> ServerConfig:
    """
    Render the nginx configuration for a classified layout.

    Args:
        layout: Classified application layout
        document_root: Absolute path nginx serves from
        settings: Build settings (port)
        cache_policy: Header rules

    Returns:
        ServerConfig with the rendered text

    Raises:
        ConfigSynthesisError: If the document root does not exist, or
            ConfigValidationError if the port is malformed
    """
    document_root = Path(document_root)
    if not document_root.is_dir():
        hint = ''
        if layout.requires_build:
            hint = ' (the front-end build has not produced its output yet)'
        raise ConfigSynthesisError(f"Document root does not exist: {document_root}{hint}")

    port = settings.port

    context: Dict[str, Any] = {
        'layout_kind': layout.kind.value,
        'document_root': str(document_root),
        'port': port,
        'cache_policy': cache_policy,
        'mime_types': sorted_mime_types(),
        'default_type': DEFAULT_TYPE,
        'try_files': '$uri $uri/ /index.html' if layout.is_single_page_app else '$uri $uri/ =404',
    }

    text = _jinja_env().get_template(TEMPLATE_NAME).render(**context)
    logger.debug(f"Rendered {TEMPLATE_NAME} for {document_root} on port {port}")

    return ServerConfig(text=text, document_root=document_root, port=port, layout=layout)
