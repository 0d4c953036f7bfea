from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def tool_use_entry(
    tool_use_id: str,
    name: str,
    tool_input: Mapping[str, Any],
    *,
    timestamp: str = "2025-09-18T14:30:45.123Z",
) -> Dict[str, Any]:
    """Assistant transcript line carrying one ``tool_use`` item."""
    return {
        "type": "assistant",
        "timestamp": timestamp,
        "message": {
            "role": "assistant",
            "content": [{"type": "tool_use", "id": tool_use_id, "name": name, "input": dict(tool_input)}],
        },
    }


def tool_result_entry(
    tool_use_id: str,
    result: Mapping[str, Any] | None,
    *,
    timestamp: str = "2025-09-18T14:30:46.000Z",
) -> Dict[str, Any]:
    """User transcript line carrying the ``tool_result`` for ``tool_use_id``."""
    entry: Dict[str, Any] = {
        "type": "user",
        "timestamp": timestamp,
        "message": {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": tool_use_id, "content": "ok"}],
        },
    }
    if result is not None:
        entry["toolUseResult"] = dict(result)
    return entry


@dataclass(slots=True)
class SessionLog:
    """Transcript being assembled for a test, written as JSONL on demand."""

    path: Path
    entries: List[Dict[str, Any]] = field(default_factory=list)

    def add_exchange(
        self,
        tool_use_id: str,
        name: str,
        tool_input: Mapping[str, Any],
        result: Mapping[str, Any] | None = None,
        *,
        timestamp: str = "2025-09-18T14:30:45.123Z",
    ) -> "SessionLog":
        self.entries.append(tool_use_entry(tool_use_id, name, tool_input, timestamp=timestamp))
        self.entries.append(tool_result_entry(tool_use_id, result, timestamp=timestamp))
        return self

    def write(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(entry) for entry in self.entries]
        self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return self.path


@pytest.fixture()
def session_log(tmp_path: Path) -> SessionLog:
    """Empty transcript located where session discovery would look for it."""
    return SessionLog(path=tmp_path / "projects" / "-home-demo-project" / "session-abc.jsonl")
