"""Naming grammar for the repository tree.

Every directory under the root is a slug: lowercase ASCII letters, digits,
hyphens and dots. Repositories are slugs ending with ``.git``; organization
folders are slugs that do not. Neither a name nor the part before ``.git``
may start or end with a hyphen, and names are at most 100 characters.
"""

import os
import re

from gitflower.core.exceptions import InvalidNameError

REPOSITORY_SUFFIX = ".git"
MAX_NAME_LENGTH = 100

_SLUG_RE = re.compile(r"[a-z0-9.-]+")
_SEPARATORS_RE = re.compile(r"[/\\]" if os.sep == "\\" else r"/")


def validate_slug(name: str) -> None:
    """Check that ``name`` is a valid slug, raising InvalidNameError if not."""
    if not name:
        raise InvalidNameError(name, "name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(name, f"name too long (max {MAX_NAME_LENGTH} characters)")
    if name in (".", ".."):
        raise InvalidNameError(name, "cannot use special directory names")
    if name.startswith("."):
        raise InvalidNameError(name, "cannot start with a dot")
    if ".." in name:
        raise InvalidNameError(name, "cannot contain '..'")
    if not _SLUG_RE.fullmatch(name):
        raise InvalidNameError(
            name,
            "must contain only lowercase letters, numbers, hyphens, and dots",
        )
    stem = name[: -len(REPOSITORY_SUFFIX)] if is_repository(name) else name
    if stem.startswith("-") or stem.endswith("-"):
        raise InvalidNameError(name, "cannot start or end with a hyphen")


def is_repository(name: str) -> bool:
    """Return True if a directory name denotes a repository."""
    return name.endswith(REPOSITORY_SUFFIX)


def validate_repository_name(name: str) -> None:
    """Check a repository leaf name: a slug ending with ``.git``."""
    validate_slug(name)
    if not is_repository(name):
        raise InvalidNameError(name, f"repository name must end with {REPOSITORY_SUFFIX}")


def validate_org_folder(name: str) -> None:
    """Check an organization folder name: a slug not ending with ``.git``."""
    validate_slug(name)
    if is_repository(name):
        raise InvalidNameError(
            name, f"organization folder must not end with {REPOSITORY_SUFFIX}"
        )


def split_path(path: str) -> list[str]:
    """Split a repository path into its non-empty components."""
    return [part for part in _SEPARATORS_RE.split(path) if part]


def validate_path(path: str) -> None:
    """Validate a full repository path such as ``org/team/project.git``.

    Empty components from leading, trailing or doubled separators are
    skipped. The first offending component is reported.
    """
    parts = split_path(path)
    if not parts:
        raise InvalidNameError(path, "path cannot be empty")

    *folders, leaf = parts
    for folder in folders:
        validate_org_folder(folder)
    validate_repository_name(leaf)


def ensure_repository_suffix(path: str) -> str:
    """Append ``.git`` to the last component of ``path`` if it is missing."""
    trimmed = path.rstrip("/\\")
    if not trimmed or is_repository(trimmed):
        return trimmed
    return trimmed + REPOSITORY_SUFFIX
