"""Folder name and logical path utilities - pure helper module.

Nothing here touches the filesystem or the database.
"""

import re
from typing import Optional

INVALID_FOLDER_CHARS = re.compile(r'[<>:"|?*\\/]')
"""Characters rejected by at least one common filesystem (Windows shares in particular)."""

CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
REPEATED_DOTS = re.compile(r'\.{2,}')

PATH_SEPARATOR = "/"


def sanitize_folder_name(name: str) -> str:
    """
    Turn a user-supplied name into a filesystem-safe folder name.

    Removes illegal and control characters, trims leading/trailing spaces
    and dots, and collapses runs of dots. An empty result means the name is
    unusable; callers must treat it as a validation failure.

    Examples:
        >>> sanitize_folder_name('<bad>:name')
        'badname'
        >>> sanitize_folder_name(' ..my...notes. ')
        'my.notes'
    """
    cleaned = INVALID_FOLDER_CHARS.sub("", name)
    cleaned = CONTROL_CHARS.sub("", cleaned)
    # strip(" .") trims both to a fixpoint, e.g. " . a . " -> "a".
    cleaned = cleaned.strip(" .")
    return REPEATED_DOTS.sub(".", cleaned)


def build_folder_path(parent_path: Optional[str], folder_name: str) -> str:
    """Materialized path for a folder named *folder_name* under *parent_path*."""
    trimmed_parent = (parent_path or "").strip()
    if not trimmed_parent:
        return folder_name
    return f"{trimmed_parent}{PATH_SEPARATOR}{folder_name}"


def rebase_child_path(child_old_path: str, old_parent_path: str, new_parent_path: str) -> str:
    """Swap the *old_parent_path* prefix of a descendant path for *new_parent_path*.

    >>> rebase_child_path("Security/Malware/Samples", "Security", "Sécurité")
    'Sécurité/Malware/Samples'
    """
    prefix = f"{old_parent_path}{PATH_SEPARATOR}" if old_parent_path else ""
    relative = child_old_path
    if prefix and child_old_path.startswith(prefix):
        relative = child_old_path[len(prefix):]
    relative = relative.lstrip(PATH_SEPARATOR)

    if not new_parent_path:
        return relative
    return f"{new_parent_path}{PATH_SEPARATOR}{relative}" if relative else new_parent_path

