"""Logical key codec.

Preferences are addressed by logical keys such as ``Cameras\\2\\Formats\\size``.
The last segment names a value, everything before it names a container under
the application root. A key ending in a separator names the container itself
(``Cameras\\2\\``), which is how whole subtrees are deleted or copied.

``/`` is accepted as an alias for ``\\`` so keys can be written either way.
Case is left alone; the backend decides whether names are case-sensitive.
"""

from __future__ import annotations

#: Root container of every preference key.
DEFAULT_ROOT = "SOFTWARE\\VirtualCamera"

SEPARATOR = "\\"
_ALT_SEPARATOR = "/"


def normalize_key(key: str) -> str:
    """Use backslashes throughout and drop leading separators."""
    return key.replace(_ALT_SEPARATOR, SEPARATOR).lstrip(SEPARATOR)


def split_key(key: str, root: str = DEFAULT_ROOT) -> tuple[str, str]:
    """Split a logical key into (container path, value name).

    Args:
        key: Logical key relative to ``root``.
        root: Root container path every key lives under.

    Returns:
        Tuple of the full backend container path and the value name. The
        value name is empty when the key ends with a separator.

    Example:
        >>> split_key("loglevel")
        ('SOFTWARE\\\\VirtualCamera', 'loglevel')
        >>> split_key("Cameras\\\\1\\\\path")
        ('SOFTWARE\\\\VirtualCamera\\\\Cameras\\\\1', 'path')
        >>> split_key("Cameras\\\\1\\\\")
        ('SOFTWARE\\\\VirtualCamera\\\\Cameras\\\\1', '')
    """
    key = normalize_key(key)
    separator = key.rfind(SEPARATOR)

    if separator < 0:
        return root, key

    return f"{root}{SEPARATOR}{key[:separator]}", key[separator + 1 :]


def container_path(key: str, root: str = DEFAULT_ROOT) -> str:
    """Full backend path of the container a key names, ignoring any leaf.

    ``Cameras\\1`` and ``Cameras\\1\\`` both name the ``Cameras\\1`` container.
    """
    key = normalize_key(key).rstrip(SEPARATOR)
    if not key:
        return root
    return f"{root}{SEPARATOR}{key}"


def join_key(*segments: object) -> str:
    """Build a logical key from segments.

    Example:
        >>> join_key("Cameras", 3, "Formats", "size")
        'Cameras\\\\3\\\\Formats\\\\size'
    """
    return SEPARATOR.join(str(segment) for segment in segments)


def subtree_key(*segments: object) -> str:
    """Build a key that names a container (trailing separator).

    Example:
        >>> subtree_key("Cameras", 3)
        'Cameras\\\\3\\\\'
    """
    return join_key(*segments) + SEPARATOR
