"""
File Utilities
Centralized helpers for file kind detection and line counting
"""

from enum import Enum
from typing import Optional


class FileKind(str, Enum):
    """Content kind of a generated file, derived from its extension"""
    HTML = "html"
    CSS = "css"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    JSON = "json"


# Suffix -> kind. Anything else is JavaScript.
_KIND_BY_SUFFIX = (
    ('.html', FileKind.HTML),
    ('.htm', FileKind.HTML),
    ('.css', FileKind.CSS),
    ('.ts', FileKind.TYPESCRIPT),
    ('.tsx', FileKind.TYPESCRIPT),
    ('.json', FileKind.JSON),
)


def infer_file_kind(name: str) -> FileKind:
    """Get the file kind for a name based on its suffix"""
    for suffix, kind in _KIND_BY_SUFFIX:
        if name.endswith(suffix):
            return kind
    return FileKind.JAVASCRIPT


def get_extension(name: str) -> Optional[str]:
    """Lower-cased extension of the basename, or None"""
    basename = get_display_name(name)
    if '.' not in basename:
        return None
    return basename.rsplit('.', 1)[1].lower()


def get_file_type(name: str) -> str:
    """
    Get the progress-UI category for a file.

    Returns one of: tsx, css, json, html, other
    """
    ext = get_extension(name)
    if ext in ('tsx', 'ts', 'jsx', 'js'):
        return 'tsx'
    if ext == 'css':
        return 'css'
    if ext == 'json':
        return 'json'
    if ext in ('html', 'htm'):
        return 'html'
    return 'other'


def get_display_name(path: str) -> str:
    """Get a display-friendly filename (basename only)"""
    return path.rsplit('/', 1)[-1] or path


def count_lines(content: str) -> int:
    """Count lines in a string; empty content has zero lines"""
    if not content:
        return 0
    return content.count('\n') + 1
