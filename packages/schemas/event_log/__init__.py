"""Event log schemas: logged snapshots and reconciliation decisions."""

from packages.schemas.event_log.decision import MilestoneUnset, ReconciliationDecision
from packages.schemas.event_log.snapshot import LoggedSnapshot

__all__ = ["LoggedSnapshot", "MilestoneUnset", "ReconciliationDecision"]
