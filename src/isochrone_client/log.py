"""
Structured isochrone log sink and console status output.

The fetch client and orchestrator write to any object exposing
``append(entry)``; :class:`IsochroneLog` is the standard implementation.
Entries are kept in memory for post-hoc export as a text report or a
DataFrame.  Nothing here influences whether a point succeeds.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd

from .config import LOGS_DIR
from .models import ProgressEvent

ENTRY_TYPES: frozenset[str] = frozenset(
    {"info", "request", "response", "success", "error", "retry"}
)

STATUS_SYMBOLS: dict[str, str] = {
    "processing": "…",
    "success": "✓",
    "error": "✗",
    "finished": "✓",
    "stopped": "⏸",
}


def make_entry(entry_type: str, message: str, data: dict | None = None) -> dict:
    """
    Build one log entry.

    Args:
        entry_type: One of :data:`ENTRY_TYPES`.
        message: Human-readable message.
        data: Optional JSON-serializable context.

    Returns:
        Dict with keys ``timestamp``, ``type``, ``message``, ``data``.

    Raises:
        ValueError: If ``entry_type`` is not a known entry type.
    """
    if entry_type not in ENTRY_TYPES:
        raise ValueError(
            f"Unknown log entry type '{entry_type}'. "
            f"Expected one of: {', '.join(sorted(ENTRY_TYPES))}"
        )
    return {
        "timestamp": datetime.now().isoformat(),
        "type": entry_type,
        "message": message,
        "data": data or {},
    }


def log_event(sink, entry_type: str, message: str, data: dict | None = None) -> None:
    """Append an entry to ``sink`` when one is configured."""
    if sink is None:
        return
    sink.append(make_entry(entry_type, message, data))


class IsochroneLog:
    """In-memory log of one isochrone batch."""

    def __init__(self, echo: bool = False) -> None:
        self.echo = echo
        self.entries: list[dict] = []
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None

    def append(self, entry: dict) -> None:
        self.entries.append(entry)
        if self.echo:
            print(f"[LOG {entry['type'].upper()}] {entry['message']}")

    def add_entry(self, entry_type: str, message: str, data: dict | None = None) -> None:
        self.append(make_entry(entry_type, message, data))

    def start(self) -> None:
        self.start_time = datetime.now()

    def finish(self) -> None:
        self.end_time = datetime.now()

    def reset(self) -> None:
        self.entries = []
        self.start_time = None
        self.end_time = None

    def entries_of_type(self, entry_type: str) -> list[dict]:
        return [e for e in self.entries if e["type"] == entry_type]

    def get_log_text(self) -> str:
        """
        Render the log as a plain-text report.

        Layout: a header with start/end time, total duration (when both are
        known) and entry count, then each entry numbered from 1 with its
        timestamp, upper-cased type, message, and indented JSON data.
        """
        start = self.start_time.isoformat() if self.start_time else "N/A"
        end = self.end_time.isoformat() if self.end_time else "N/A"

        lines = [
            "=== ISOCHRONE CREATION LOG ===",
            "",
            f"Start Time: {start}",
            f"End Time: {end}",
        ]
        if self.start_time and self.end_time:
            duration = (self.end_time - self.start_time).total_seconds()
            lines.append(f"Total Duration: {duration:.2f} seconds")
        lines.append(f"Total Entries: {len(self.entries)}")
        lines.extend(["", "=== DETAILED LOG ENTRIES ===", ""])

        for i, entry in enumerate(self.entries, start=1):
            lines.append(f"[{i}] [{entry['timestamp']}] [{entry['type'].upper()}]")
            lines.append(f"Message: {entry['message']}")
            if entry["data"]:
                lines.append(f"Data: {json.dumps(entry['data'], indent=2, default=str)}")
            lines.append("")

        return "\n".join(lines) + "\n"

    def export_log(self, path: Path | None = None, logs_dir: Path = LOGS_DIR) -> Path:
        """
        Write :meth:`get_log_text` to disk.

        Args:
            path: Explicit output path.  When omitted, a timestamped
                  ``isochrone_log_<timestamp>.txt`` is created in ``logs_dir``.
            logs_dir: Directory for the default file name.

        Returns:
            Path of the written file.
        """
        if path is None:
            stamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
            path = logs_dir / f"isochrone_log_{stamp}.txt"

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.get_log_text(), encoding="utf-8")
        print(f"Isochrone log ({len(self.entries)} entries) written to {path}")
        return path

    def to_frame(self) -> pd.DataFrame:
        """Return one row per entry; ``data`` is serialized to a JSON string."""
        return pd.DataFrame(
            [
                {
                    "timestamp": e["timestamp"],
                    "type": e["type"],
                    "message": e["message"],
                    "data": json.dumps(e["data"], default=str),
                }
                for e in self.entries
            ],
            columns=["timestamp", "type", "message", "data"],
        )


def print_status(event: ProgressEvent) -> None:
    """Default status sink: one console line per progress event."""
    symbol = STATUS_SYMBOLS.get(event.status, "")
    if event.status == "processing":
        print(f"  {symbol} Creating isochrone: {event.station_name} "
              f"({event.current_index}/{event.total_count})")
    elif event.status == "success":
        print(f"  {symbol} Completed: {event.station_name} "
              f"({event.current_index}/{event.total_count})")
    elif event.status == "error":
        print(f"  {symbol} Failed: {event.station_name} "
              f"({event.current_index}/{event.total_count})")
    elif event.status == "finished":
        print(f"{symbol} All isochrones completed ({event.current_index} successful)")
    elif event.status == "stopped":
        print(f"{symbol} Isochrone creation stopped ({event.current_index} completed)")
