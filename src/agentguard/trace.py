"""Trace recorder for agent runs.

A trace keeps every model output fed to ``advance`` in order, which is all
that is needed to replay a task exactly: the engine is a pure function of
state and text.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agentguard.util.logging import redact


@dataclass
class TraceRecorder:
    trace_id: str
    started_at: float = field(default_factory=time.time)
    events: list[dict[str, Any]] = field(default_factory=list)

    def record(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append(
            {
                "type": event_type,
                "timestamp": time.time(),
                "payload": payload,
            }
        )

    def record_step(self, model_output: str, decision: dict[str, Any], state_json: str) -> None:
        self.record(
            "step",
            {"model_output": model_output, "decision": decision, "state": state_json},
        )

    def record_capability(
        self, name: str, category: str, output: str, reason: str | None = None
    ) -> None:
        self.record(
            "capability",
            {"name": name, "category": category, "output": redact(output), "reason": reason},
        )

    def model_outputs(self) -> list[str]:
        return [event["payload"]["model_output"] for event in self.events if event["type"] == "step"]

    def finalize(self, trace_dir: str, stats: dict[str, Any]) -> str:
        directory = Path(trace_dir)
        directory.mkdir(parents=True, exist_ok=True)
        trace_path = directory / f"{self.trace_id}.json"
        payload = {
            "trace_id": self.trace_id,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "stats": stats,
            "events": self.events,
        }
        trace_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return str(trace_path)
