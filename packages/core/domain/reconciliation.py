"""State differ for issue reconciliation.

Compares the live state of an issue with its latest logged snapshot and
decides whether a synthetic event must be written. Pure functions only; no
I/O happens here.

Synthetic event ids live above ``SYNTHETIC_EVENT_ID_OFFSET`` (2^48). Real
GitHub event ids must stay below it for the mapping ``offset + source_id`` to
never collide with a real id; ``validate_real_event_id_range`` checks that
precondition.
"""

from collections.abc import Iterable

from packages.schemas.event_log import LoggedSnapshot, ReconciliationDecision
from packages.schemas.github import LiveIssue

SYNTHETIC_EVENT_ID_OFFSET = 2**48
SYNTHETIC_EVENT_TYPE = "ArtificialEvent"
SYNTHETIC_ACTOR_LOGIN = "devstats-bot"


class EventLogError(Exception):
    """Event log invariant violated (real ids at the offset, missing source rows)."""

    pass


def synthetic_event_id(source_event_id: int) -> int:
    """Derive the synthetic event id for a write cloned from ``source_event_id``.

    Deterministic and injective: distinct sources always map to distinct ids,
    and every result is at or above the offset.

    Raises:
        ValueError: If ``source_event_id`` is negative.
    """
    if source_event_id < 0:
        raise ValueError(f"Event id must be non-negative, got {source_event_id}")
    return SYNTHETIC_EVENT_ID_OFFSET + source_event_id


def is_synthetic_event_id(event_id: int) -> bool:
    """True when ``event_id`` was allocated by reconciliation."""
    return event_id >= SYNTHETIC_EVENT_ID_OFFSET


def validate_real_event_id_range(max_real_event_id: int | None) -> None:
    """Check that real event ids stay below the synthetic offset.

    Raises:
        EventLogError: If the largest real id reaches the offset.
    """
    if max_real_event_id is not None and max_real_event_id >= SYNTHETIC_EVENT_ID_OFFSET:
        raise EventLogError(
            f"Real event id {max_real_event_id} reaches the synthetic offset "
            f"{SYNTHETIC_EVENT_ID_OFFSET}; synthetic ids could collide"
        )


def canonical_label_key(label_ids: Iterable[int]) -> str:
    """Sorted, comma-joined label ids; order-independent set identity.

    Examples:
        >>> canonical_label_key([3, 1, 2])
        '1,2,3'
        >>> canonical_label_key([])
        ''
    """
    return ",".join(str(label_id) for label_id in sorted(set(label_ids)))


def diff_issue_state(live: LiveIssue, logged: LoggedSnapshot) -> ReconciliationDecision:
    """Compare live state with the logged snapshot.

    Milestone: ``"unset"`` when live has none but logged has one; the live id
    when live has one that differs from logged (including logged none);
    otherwise no change. Labels: changed iff the canonical keys differ.
    """
    new_milestone: int | str | None = None
    if live.milestone_id is None and logged.milestone_id is not None:
        new_milestone = "unset"
    elif live.milestone_id is not None and live.milestone_id != logged.milestone_id:
        new_milestone = live.milestone_id

    labels_changed = canonical_label_key(live.labels) != canonical_label_key(logged.label_ids)

    return ReconciliationDecision(new_milestone=new_milestone, labels_changed=labels_changed)


__all__ = [
    "EventLogError",
    "SYNTHETIC_ACTOR_LOGIN",
    "SYNTHETIC_EVENT_ID_OFFSET",
    "SYNTHETIC_EVENT_TYPE",
    "canonical_label_key",
    "diff_issue_state",
    "is_synthetic_event_id",
    "synthetic_event_id",
    "validate_real_event_id_range",
]
