"""View object for a single step of a workflow's operation log."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class WorkflowOperation:
    """One discrete sub-task of a workflow, built from a raw operation entry."""

    id: str | None = None
    type: str | None = None
    description: str | None = None
    result: str | None = None
    run_time: float | None = None
    log_output: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, hash=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> WorkflowOperation:
        if not isinstance(payload, dict):
            return cls(description=str(payload), raw={"description": payload})
        run_time = payload.get("run_time")
        return cls(
            id=payload.get("id"),
            type=payload.get("type"),
            description=payload.get("description"),
            result=payload.get("result"),
            run_time=float(run_time) if isinstance(run_time, (int, float)) else None,
            log_output=payload.get("log_output"),
            raw=dict(payload),
        )

    def has_logs(self) -> bool:
        return bool(self.log_output)

    def serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "result": self.result,
            "duration": f"{self.run_time:.2f}s" if self.run_time is not None else None,
            "log_output": self.log_output,
        }
