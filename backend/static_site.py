"""Static file lookup for the public site served next to the API."""

import os
from pathlib import Path

from engagement.errors import Forbidden, NotFound

DEFAULT_PUBLIC_DIR = os.path.join(os.path.dirname(__file__), "public")
INDEX_DOCUMENT = "index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".mjs": "application/javascript; charset=utf-8",
    ".json": "application/json",
    ".txt": "text/plain; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".mp3": "audio/mpeg",
    ".wasm": "application/wasm",
}


def content_type_for(path: str) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def resolve_static_path(public_dir: str, url_path: str) -> str:
    """Map an already URL-decoded path to a file inside ``public_dir``.

    Raises Forbidden if the normalized path escapes the root and NotFound if
    there is no regular file there.
    """
    root = os.path.realpath(public_dir)
    rel = url_path
    if rel in ("", "/"):
        rel = INDEX_DOCUMENT
    try:
        candidate = os.path.realpath(os.path.join(root, rel.lstrip("/\\")))
        is_file = os.path.isfile(candidate)
    except ValueError:
        # embedded NUL byte, cannot name a file on disk
        raise NotFound("Not found")
    if candidate != root and not candidate.startswith(root + os.sep):
        raise Forbidden("Forbidden")
    if not is_file:
        raise NotFound("Not found")
    return candidate
