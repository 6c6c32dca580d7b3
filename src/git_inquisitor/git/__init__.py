"""Git repository access module."""

from .repository import (
    BlameLine,
    GitRepository,
    GitRepositoryError,
    contributor_name,
    count_lines,
    format_contributor,
    is_binary,
)

__all__ = [
    "BlameLine",
    "GitRepository",
    "GitRepositoryError",
    "contributor_name",
    "count_lines",
    "format_contributor",
    "is_binary",
]
