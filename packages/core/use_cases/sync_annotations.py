"""SyncAnnotationsUseCase - publish annotations and quick ranges.

Annotations come from the project's repository tags, or, for projects
without a repository, from a start date and a join date. They are turned into
annotation points plus quick-range points and written as one batch.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from packages.core.domain.quick_ranges import build_annotation_points, fake_annotations
from packages.core.ports.point_writer import PointWriterPort
from packages.core.ports.tag_lister import TagLister
from packages.schemas.timeseries import Annotation

logger = logging.getLogger(__name__)


class SyncAnnotationsUseCase:
    """Use case for writing annotation and quick-range points.

    Attributes:
        tag_lister: Source of repository tags.
        point_writer: Time-series batch writer.
    """

    def __init__(
        self,
        tag_lister: TagLister,
        point_writer: PointWriterPort,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.tag_lister = tag_lister
        self.point_writer = point_writer
        self._clock = clock

        logger.info("Initialized SyncAnnotationsUseCase")

    def collect(
        self,
        org_repo: str | None = None,
        start_date: datetime | None = None,
        join_date: datetime | None = None,
    ) -> list[Annotation]:
        """Annotations for one project.

        Args:
            org_repo: Repository whose tags become annotations.
            start_date: Project start, used when no repository is given.
            join_date: Join date, used with ``start_date`` when no repository is given.

        Returns:
            list[Annotation]: Unsorted annotations (possibly empty).
        """
        if org_repo:
            return self.tag_lister.list_tags(org_repo)
        if start_date is not None and join_date is not None:
            return fake_annotations(start_date, join_date)
        logger.warning("No repository and no start/join dates given, no annotations")
        return []

    def execute(
        self,
        org_repo: str | None = None,
        start_date: datetime | None = None,
        join_date: datetime | None = None,
        drop: bool = False,
    ) -> dict[str, int]:
        """Build and write every annotation and quick-range point.

        Args:
            org_repo: Repository whose tags become annotations.
            start_date: Project start for projects without a repository.
            join_date: Join date; also adds a standalone join-date point.
            drop: Delete the previous quick-range series before writing.

        Returns:
            dict[str, int]: ``annotations``, ``points`` and ``written`` counts.

        Raises:
            TagListingError: If tags cannot be listed or parsed.
            PointWriteError: If the batch write fails.
        """
        annotations = self.collect(org_repo, start_date, join_date)
        points = build_annotation_points(annotations, self._clock(), join_date)
        logger.info(
            f"Prepared {len(points)} points from {len(annotations)} annotations",
            extra={"org_repo": org_repo, "drop": drop},
        )

        written = self.point_writer.write(points, drop_quick_ranges=drop)
        return {"annotations": len(annotations), "points": len(points), "written": written}


__all__ = ["SyncAnnotationsUseCase"]
