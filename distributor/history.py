"""
Distribution History

Appends distribution events to .distribute_log.jsonl in the working
directory, one JSON object per line:

    log_event(EventType.FILE_WRITTEN, "Wrote src/a.js", {"path": "src/a.js"})
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

LOG_FILENAME = ".distribute_log.jsonl"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventType(str, Enum):
    """Types of events that can be logged."""
    ARTIFACT_RESOLVED = "artifact_resolved"
    ARTIFACT_DROPPED = "artifact_dropped"
    FILE_WRITTEN = "file_written"
    FILE_FAILED = "file_failed"
    COMMAND_EXECUTED = "command_executed"
    COMMAND_FAILED = "command_failed"
    RUN_COMPLETED = "run_completed"
    RUN_ABORTED = "run_aborted"


class DistributionEvent(BaseModel):
    """A single event in the distribution log."""
    timestamp: datetime = Field(default_factory=_utc_now)
    event_type: EventType
    message: str
    details: dict = Field(default_factory=dict)


def get_log_file(working_dir: Optional[Path] = None) -> Path:
    """Get the log file path."""
    if working_dir is None:
        working_dir = Path.cwd()
    return Path(working_dir) / LOG_FILENAME


class HistoryLog:
    """
    Event sink for one run.

    A disabled log accepts events and drops them, so callers never need
    to check the `history` setting themselves.
    """

    def __init__(self, working_dir: Optional[Path] = None, enabled: bool = True):
        self.path = get_log_file(working_dir)
        self.enabled = enabled

    def log_event(self, event_type: EventType, message: str, details: Optional[dict] = None) -> None:
        if not self.enabled:
            return
        event = DistributionEvent(event_type=event_type, message=message, details=details or {})
        with open(self.path, "a") as f:
            f.write(json.dumps(event.model_dump(mode="json"), default=str) + "\n")

    def read_events(self) -> list[DistributionEvent]:
        """Load every logged event (empty if there is no log yet)."""
        if not self.path.exists():
            return []
        events = []
        with open(self.path) as f:
            for line in f:
                if line.strip():
                    events.append(DistributionEvent.model_validate_json(line))
        return events
