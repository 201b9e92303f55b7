"""
Tests for the audit ledger.
"""

from pathlib import Path

from architech.core.engine.executor import write_audit_entry
from architech.core.models import ExecutionError, ExecutionResult, RunReport
from architech.core.persistence.audit import AuditEntry, AuditWriter


class TestAuditWriter:
    def test_path(self, tmp_path: Path):
        assert AuditWriter(project_root=tmp_path).path == tmp_path / ".architech" / "audit.ndjson"
        assert AuditWriter(project_root=tmp_path, audit_dir="logs").path == tmp_path / "logs" / "audit.ndjson"
        assert AuditWriter(path=tmp_path / "x.ndjson").path == tmp_path / "x.ndjson"

    def test_write_and_read(self, tmp_path: Path):
        writer = AuditWriter(project_root=tmp_path)
        writer.write(AuditEntry(operation_id="op-1", project="demo", status="ok"))
        writer.write(AuditEntry(operation_id="op-2", project="demo", status="failed"))

        entries = writer.read_all()

        assert [e.operation_id for e in entries] == ["op-1", "op-2"]
        assert writer.entry_count() == 2

    def test_read_recent(self, tmp_path: Path):
        writer = AuditWriter(project_root=tmp_path)
        for i in range(5):
            writer.write(AuditEntry(operation_id=f"op-{i}"))

        assert [e.operation_id for e in writer.read_recent(2)] == ["op-3", "op-4"]
        assert writer.read_recent(0) == []

    def test_missing_ledger(self, tmp_path: Path):
        writer = AuditWriter(project_root=tmp_path)
        assert writer.read_all() == []
        assert writer.entry_count() == 0

    def test_corrupt_lines_skipped(self, tmp_path: Path):
        writer = AuditWriter(project_root=tmp_path)
        writer.write(AuditEntry(operation_id="good"))
        with writer.path.open("a") as f:
            f.write("{not json\n")
            f.write('{"modules_total": "many"}\n')
        writer.write(AuditEntry(operation_id="also-good"))

        assert [e.operation_id for e in writer.read_all()] == ["good", "also-good"]


class TestWriteAuditEntry:
    def test_summarizes_report(self, tmp_path: Path):
        failed = ExecutionResult(
            module_id="ui/shadcn",
            errors=[ExecutionError(code="FILE_EXISTS", kind="ConflictError", message="a.ts already exists")],
        )
        ok = ExecutionResult(module_id="framework/nextjs", success=True, artifacts=["package.json"])
        report = RunReport(operation_id="op-x", results=[ok, failed], not_run=["db/drizzle"])
        writer = AuditWriter(project_root=tmp_path)

        entry = write_audit_entry(report, writer, project="demo", recipe="recipe.yml")

        assert entry.status == "partial"
        assert entry.modules == ["framework/nextjs", "ui/shadcn"]
        assert entry.modules_not_run == ["db/drizzle"]
        assert entry.modules_total == 3
        assert entry.artifacts == ["package.json"]
        assert entry.errors == ["module ui/shadcn failed: a.ts already exists"]
        assert writer.read_all()[0].operation_id == "op-x"
