from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping


@dataclass
class TelemetryService:
    """Append-only JSONL log of match lifecycle records.

    Each record carries a per-service sequence number so records from
    several matches written to one file keep their order.
    """

    path: Path
    seq: int = field(default=0, init=False)

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.seq += 1
        rec = {
            "seq": self.seq,
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
