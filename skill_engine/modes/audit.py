"""
Transition Audit Log

One entry per accepted mode transition: from, to, reason, timestamp.
Entries are kept in memory and optionally appended to a JSON Lines file.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Union

if TYPE_CHECKING:
    from skill_engine.modes.state_machine import ModeState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionRecord:
    from_mode: "ModeState"
    to_mode: "ModeState"
    reason: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_mode.value,
            "to": self.to_mode.value,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


class TransitionAuditLog:
    """Append-only record of mode transitions."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            path: Optional JSONL file every record is appended to
            clock: Timestamp source (UTC now by default)
        """
        self.path = Path(path) if path else None
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: List[TransitionRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TransitionRecord]:
        return iter(self._records)

    @property
    def records(self) -> List[TransitionRecord]:
        return list(self._records)

    def record(self, from_mode: "ModeState", to_mode: "ModeState", reason: str) -> TransitionRecord:
        entry = TransitionRecord(
            from_mode=from_mode,
            to_mode=to_mode,
            reason=reason,
            timestamp=self._clock(),
        )
        # A record is kept in memory only once it is on disk.
        if self.path is not None:
            self._append(entry)
        self._records.append(entry)
        return entry

    def _append(self, entry: TransitionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")

    def export_jsonl(self, path: Union[str, Path]) -> Path:
        """Write every record to a JSON Lines file, replacing it."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for entry in self._records:
                f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        logger.debug(f"Exported {len(self._records)} transition records to {path}")
        return path

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self._records]
