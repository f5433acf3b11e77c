from __future__ import annotations

import json
from pathlib import Path

from vardeps.remover.contracts import ErrorKind, RemovalReport, RemovalResult


def test_removed_count_tracks_removed_names() -> None:
    res = RemovalResult().succeed(["A", "B"])

    assert res.success is True
    assert res.removed_count == 2
    assert res.to_dict()["removed_count"] == 2

    res.fail(ErrorKind.IO, "disk full")
    assert res.removed_count == 0
    assert res.to_dict()["error_kind"] == "io_error"


def test_report_lists_skipped_names_and_round_trips(tmp_path: Path) -> None:
    res = RemovalResult().succeed(["B"])

    report = RemovalReport.from_result(res, location="pkg.var", requested=["A", "B", "C"])
    out = tmp_path / "reports" / "removal.json"
    report.write_json(out)
    loaded = json.loads(out.read_text(encoding="utf-8"))

    assert loaded["schema_version"] == 1
    assert loaded["location"] == "pkg.var"
    assert loaded["removed_dependencies"] == ["B"]
    assert loaded["removed_count"] == 1
    assert loaded["skipped"] == ["A", "C"]
    assert loaded["error_kind"] is None
    assert loaded["generated_at_utc"] != ""


def test_failed_report_has_no_skipped_names() -> None:
    res = RemovalResult().fail(ErrorKind.NOT_FOUND, "Package path does not exist: x")

    report = RemovalReport.from_result(res, location="x", requested=["A"])

    assert report.success is False
    assert report.error_kind == "not_found"
    assert report.skipped == []
