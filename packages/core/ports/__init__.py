"""Ports for core use-cases."""

from __future__ import annotations

from packages.core.ports.event_log import EventLogPort
from packages.core.ports.issue_api import IssueApiPort
from packages.core.ports.point_writer import PointWriterPort
from packages.core.ports.tag_lister import TagLister

__all__ = ["EventLogPort", "IssueApiPort", "PointWriterPort", "TagLister"]
