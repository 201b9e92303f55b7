"""
Audit ledger — one NDJSON line per ``architech run``.

Lines live in ``<root>/.architech/audit.ndjson`` and record the modules a
run touched, how many committed, which failed, the files written and the
run's duration. The ledger is only ever appended to.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".architech"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """Summary of one recipe run."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = "run"     # run | dry-run
    project: str = ""
    recipe: str = ""

    modules: list[str] = Field(default_factory=list)
    modules_total: int = 0
    modules_succeeded: int = 0
    modules_failed: int = 0
    modules_not_run: list[str] = Field(default_factory=list)

    status: str = ""                # ok | partial | failed
    artifacts: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    duration_ms: int = 0
    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Appends entries to, and reads them back from, a project's ledger file."""

    def __init__(
        self,
        path: Path | None = None,
        project_root: Path | None = None,
        audit_dir: str = DEFAULT_AUDIT_DIR,
    ):
        if path is None:
            base = project_root if project_root is not None else Path(".")
            path = base / audit_dir / DEFAULT_AUDIT_FILE
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append ``entry``. A failed write is logged, never raised."""
        record = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as ledger:
                ledger.write(record + "\n")
        except OSError as e:
            logger.error("Could not append to audit ledger %s: %s", self._path, e)
            return
        logger.debug("Audit entry %s (%s) appended", entry.operation_id, entry.operation_type)

    def _lines(self) -> Iterator[tuple[int, str]]:
        if not self._path.is_file():
            return
        try:
            with self._path.open("r", encoding="utf-8") as ledger:
                for number, raw in enumerate(ledger, start=1):
                    if raw.strip():
                        yield number, raw
        except OSError as e:
            logger.error("Could not read audit ledger %s: %s", self._path, e)

    def read_all(self) -> list[AuditEntry]:
        """Every readable entry, oldest first; corrupt lines are skipped."""
        entries: list[AuditEntry] = []
        for number, raw in self._lines():
            try:
                entries.append(AuditEntry.model_validate_json(raw))
            except PydanticValidationError as e:
                logger.warning("Skipping corrupt audit line %d: %s", number, e.errors()[0].get("msg", e))
        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first."""
        if n <= 0:
            return []
        return self.read_all()[-n:]

    def entry_count(self) -> int:
        return sum(1 for _ in self._lines())
