"""Annotation sorting and quick-range partitioning.

Turns a sparse set of dated annotations into a gap-free partition of time:
``[a0, a1), [a1, a2), ..., [aN, start of tomorrow)``, plus seven fixed
relative ranges. Every range becomes one ``quick_ranges`` point; points get
synthetic timestamps one hour apart so the store keeps them distinct.
"""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from packages.schemas.timeseries import Annotation, QuickRange, TimeseriesPoint

ANNOTATIONS_SERIES = "annotations"
QUICK_RANGES_SERIES = "quick_ranges"
QUICK_RANGES_BASE_TIME = datetime(2014, 1, 1, tzinfo=UTC)
POINT_STEP = timedelta(hours=1)

# (suffix, display name, relative period passed to SQL)
FIXED_PERIODS: tuple[tuple[str, str, str], ...] = (
    ("d", "Last day", "1 day"),
    ("w", "Last week", "1 week"),
    ("d10", "Last 10 days", "10 days"),
    ("m", "Last month", "1 month"),
    ("q", "Last quarter", "3 months"),
    ("y", "Last year", "1 year"),
    ("y10", "Last decade", "10 years"),
)

_RANGE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_range_time(moment: datetime) -> str:
    """Format a range bound as ``YYYY-MM-DD HH:MM:SS`` in UTC."""
    return moment.astimezone(UTC).strftime(_RANGE_TIME_FORMAT)


def next_day_start(now: datetime) -> datetime:
    """Midnight (UTC) of the calendar day after ``now``."""
    current = now.astimezone(UTC)
    return datetime(current.year, current.month, current.day, tzinfo=UTC) + timedelta(days=1)


def _absolute_data(suffix: str, start: datetime, end: datetime) -> str:
    return f"{suffix};;{format_range_time(start)};{format_range_time(end)}"


def sort_annotations(annotations: Iterable[Annotation]) -> list[Annotation]:
    """Ascending by date; ties keep discovery order (stable sort)."""
    return sorted(annotations, key=lambda annotation: annotation.date)


def fixed_quick_ranges() -> list[QuickRange]:
    """The seven relative ranges (last day ... last decade)."""
    return [
        QuickRange(suffix=suffix, name=name, data=f"{suffix};{period};;")
        for suffix, name, period in FIXED_PERIODS
    ]


def annotation_quick_ranges(annotations: list[Annotation], now: datetime) -> list[QuickRange]:
    """Adjacent ranges between sorted annotations, then last annotation to now.

    Args:
        annotations: Annotations already sorted by date.
        now: Write time; the final range ends at the start of the next day.
    """
    ranges: list[QuickRange] = []
    last_index = len(annotations) - 1
    for index, annotation in enumerate(annotations):
        if index == last_index:
            suffix = f"anno_{index}_now"
            ranges.append(
                QuickRange(
                    suffix=suffix,
                    name=f"{annotation.name} - now",
                    data=_absolute_data(suffix, annotation.date, next_day_start(now)),
                )
            )
            break
        following = annotations[index + 1]
        suffix = f"anno_{index}_{index + 1}"
        ranges.append(
            QuickRange(
                suffix=suffix,
                name=f"{annotation.name} - {following.name}",
                data=_absolute_data(suffix, annotation.date, following.date),
            )
        )
    return ranges


def build_quick_ranges(annotations: Iterable[Annotation], now: datetime) -> list[QuickRange]:
    """Fixed relative ranges followed by the annotation partition."""
    return fixed_quick_ranges() + annotation_quick_ranges(sort_annotations(annotations), now)


def quick_range_points(ranges: list[QuickRange]) -> list[TimeseriesPoint]:
    """One ``quick_ranges`` point per range, timestamps base + 1h each."""
    points = []
    moment = QUICK_RANGES_BASE_TIME
    for quick_range in ranges:
        points.append(
            TimeseriesPoint(
                measurement=QUICK_RANGES_SERIES,
                tags={
                    f"{QUICK_RANGES_SERIES}_suffix": quick_range.suffix,
                    f"{QUICK_RANGES_SERIES}_name": quick_range.name,
                    f"{QUICK_RANGES_SERIES}_data": quick_range.data,
                },
                fields={"value": 0.0},
                time=moment,
            )
        )
        moment += POINT_STEP
    return points


def annotation_point(annotation: Annotation) -> TimeseriesPoint:
    """``annotations`` point carrying title and description at the annotation date."""
    return TimeseriesPoint(
        measurement=ANNOTATIONS_SERIES,
        fields={"title": annotation.name, "description": annotation.description},
        time=annotation.date,
    )


def join_date_annotation(join_date: datetime) -> Annotation:
    """Extra annotation marking the foundation join date; not used for ranges."""
    return Annotation(
        name="CNCF join date",
        description=f"{join_date.strftime('%Y-%m-%d')} - joined CNCF",
        date=join_date,
    )


def build_annotation_points(
    annotations: Iterable[Annotation],
    now: datetime,
    join_date: datetime | None = None,
) -> list[TimeseriesPoint]:
    """All points of one annotation run, in write order.

    Sorted annotation points, the optional join-date point, then the quick
    range points (fixed ranges first).
    """
    ordered = sort_annotations(annotations)
    points = [annotation_point(annotation) for annotation in ordered]
    if join_date is not None:
        points.append(annotation_point(join_date_annotation(join_date)))
    return points + quick_range_points(build_quick_ranges(ordered, now))


def fake_annotations(start_date: datetime, join_date: datetime) -> list[Annotation]:
    """Start/join annotations for projects without a tagged repository.

    Returns an empty list unless ``join_date`` is strictly after ``start_date``.
    """
    if not join_date > start_date:
        return []
    return [
        Annotation(
            name="Project start",
            description=f"{start_date.strftime('%Y-%m-%d')} - project starts",
            date=start_date,
        ),
        Annotation(
            name="First CNCF project join date",
            description=join_date.strftime("%Y-%m-%d"),
            date=join_date,
        ),
    ]


__all__ = [
    "ANNOTATIONS_SERIES",
    "FIXED_PERIODS",
    "QUICK_RANGES_BASE_TIME",
    "QUICK_RANGES_SERIES",
    "annotation_point",
    "annotation_quick_ranges",
    "build_annotation_points",
    "build_quick_ranges",
    "fake_annotations",
    "fixed_quick_ranges",
    "format_range_time",
    "join_date_annotation",
    "next_day_start",
    "quick_range_points",
    "sort_annotations",
]
