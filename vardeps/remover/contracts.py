"""Result records and the JSON report contract for dependency removal."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

REPORT_SCHEMA_VERSION = 1


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    DESCRIPTOR_NOT_FOUND = "descriptor_not_found"
    FORMAT = "format_error"
    IO = "io_error"
    UNEXPECTED = "unexpected"


@dataclass
class RemovalResult:
    """Outcome of one removal call.

    ``removed_dependencies`` lists the names actually removed, in the order the
    caller supplied them. Names absent from the descriptor are not errors and are
    simply left out.
    """

    success: bool = False
    error_message: str = ""
    removed_dependencies: list[str] = field(default_factory=list)
    error_kind: ErrorKind | None = None

    @property
    def removed_count(self) -> int:
        return len(self.removed_dependencies)

    def succeed(self, removed: list[str]) -> RemovalResult:
        self.success = True
        self.error_message = ""
        self.error_kind = None
        self.removed_dependencies = list(removed)
        return self

    def fail(self, kind: ErrorKind, message: str) -> RemovalResult:
        self.success = False
        self.error_kind = kind
        self.error_message = message
        self.removed_dependencies = []
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error_kind": self.error_kind.value if self.error_kind is not None else None,
            "error_message": self.error_message,
            "removed_count": self.removed_count,
            "removed_dependencies": list(self.removed_dependencies),
        }


class RemovalReport(BaseModel):
    """Persisted summary of a removal request (``--json-out``)."""

    model_config = ConfigDict(extra="allow")

    schema_version: int = REPORT_SCHEMA_VERSION
    generated_at_utc: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    location: str
    dry_run: bool = False
    requested: list[str] = Field(default_factory=list)
    success: bool
    error_kind: str | None = None
    error_message: str = ""
    removed_count: int = 0
    removed_dependencies: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(
        cls,
        result: RemovalResult,
        *,
        location: str | Path,
        requested: list[str],
        dry_run: bool = False,
    ) -> RemovalReport:
        removed = set(result.removed_dependencies)
        skipped = [name for name in requested if name not in removed] if result.success else []
        return cls(
            location=str(location),
            dry_run=dry_run,
            requested=list(requested),
            skipped=skipped,
            **result.to_dict(),
        )

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json_text(self) -> str:
        return json.dumps(self.as_dict(), ensure_ascii=False, indent=2)

    def write_json(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json_text(), encoding="utf-8")
