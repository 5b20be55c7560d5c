"""MIME types served by nginx, keyed by content type."""

MIME_TYPES = {
    'application/atom+xml': ['atom'],
    'application/font-woff': ['woff'],
    'application/gzip': ['gz'],
    'application/javascript': ['js', 'mjs'],
    'application/json': ['json', 'map'],
    'application/manifest+json': ['webmanifest'],
    'application/octet-stream': ['bin', 'exe', 'dll', 'iso', 'img', 'msi'],
    'application/pdf': ['pdf'],
    'application/rss+xml': ['rss'],
    'application/wasm': ['wasm'],
    'application/xhtml+xml': ['xhtml'],
    'application/xml': ['xml'],
    'application/zip': ['zip'],
    'audio/mpeg': ['mp3'],
    'audio/ogg': ['ogg'],
    'audio/wav': ['wav'],
    'font/otf': ['otf'],
    'font/ttf': ['ttf'],
    'font/woff2': ['woff2'],
    'image/avif': ['avif'],
    'image/gif': ['gif'],
    'image/jpeg': ['jpeg', 'jpg'],
    'image/png': ['png'],
    'image/svg+xml': ['svg', 'svgz'],
    'image/vnd.microsoft.icon': ['ico'],
    'image/webp': ['webp'],
    'text/css': ['css'],
    'text/csv': ['csv'],
    'text/html': ['html', 'htm', 'shtml'],
    'text/markdown': ['md'],
    'text/plain': ['txt'],
    'video/mp4': ['mp4'],
    'video/webm': ['webm'],
}

DEFAULT_TYPE = 'application/octet-stream'


def sorted_mime_types():
    """MIME types in a stable order for rendering."""
    return [(content_type, sorted(MIME_TYPES[content_type])) for content_type in sorted(MIME_TYPES)]
