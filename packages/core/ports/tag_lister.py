"""TagLister - Port interface for discovering repository tags as annotations."""

from __future__ import annotations

from typing import Protocol

from packages.schemas.timeseries import Annotation


class TagLister(Protocol):
    """Lists a repository's tags as annotations (unsorted, discovery order)."""

    def list_tags(self, org_repo: str) -> list[Annotation]:
        """Return annotations for the tags of ``org_repo`` ('org/repo')."""
        ...


__all__ = ["TagLister"]
