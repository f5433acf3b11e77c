from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from vardeps.cli import cli
from vardeps.utils.config import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


def test_cli_registers_remove_deps_command() -> None:
    assert "remove-deps" in cli.commands


def test_remove_deps_rewrites_archive_and_writes_report(
    sample_var: Path, tmp_path: Path, read_entries
) -> None:
    report_path = tmp_path / "reports" / "removal.json"

    res = CliRunner().invoke(
        cli,
        [
            "remove-deps",
            str(sample_var),
            "-d",
            "Author.Alpha.1",
            "-d",
            "Missing.Package.1",
            "--json-out",
            str(report_path),
        ],
        catch_exceptions=False,
    )

    assert res.exit_code == 0, res.output
    assert "Mode: archive" in res.output
    assert "Removed: 1 of 2" in res.output
    assert "Not present: 1" in res.output

    meta = json.loads(dict(read_entries(sample_var))["meta.json"])
    assert "Author.Alpha.1" not in meta["dependencies"]

    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["success"] is True
    assert report["dry_run"] is False
    assert report["removed_dependencies"] == ["Author.Alpha.1"]
    assert report["skipped"] == ["Missing.Package.1"]


def test_dry_run_does_not_touch_folder(unpacked_package: Path, sample_meta: str) -> None:
    res = CliRunner().invoke(
        cli,
        ["remove-deps", str(unpacked_package), "-d", "Author.Delta.2", "--dry-run"],
        catch_exceptions=False,
    )

    assert res.exit_code == 0, res.output
    assert "Mode: unpacked (dry run)" in res.output
    assert "Would remove: 1 of 1" in res.output
    assert (unpacked_package / "meta.json").read_text(encoding="utf-8") == sample_meta


def test_deps_file_and_pattern_matcher(sample_var: Path, tmp_path: Path, read_entries) -> None:
    deps_file = tmp_path / "deps.txt"
    deps_file.write_text(
        "# unused packages\nAuthor.Delta.2\n\nAuthor.Alpha.1\nAuthor.Delta.2\n",
        encoding="utf-8",
    )

    res = CliRunner().invoke(
        cli,
        ["remove-deps", str(sample_var), "--deps-file", str(deps_file), "--matcher", "pattern"],
        catch_exceptions=False,
    )

    assert res.exit_code == 0, res.output
    assert "Matcher: pattern" in res.output
    assert "Removed: 2 of 2" in res.output
    meta = json.loads(dict(read_entries(sample_var))["meta.json"])
    assert list(meta["dependencies"]) == ["Author.Beta.latest"]


def test_matcher_default_comes_from_config(sample_var: Path, tmp_path: Path) -> None:
    custom = tmp_path / "custom.yaml"
    custom.write_text("descriptor:\n  matcher: pattern\n", encoding="utf-8")

    res = CliRunner().invoke(
        cli,
        ["--config", str(custom), "remove-deps", str(sample_var), "-d", "Author.Beta.latest"],
        catch_exceptions=False,
    )

    assert res.exit_code == 0, res.output
    assert "Matcher: pattern" in res.output
    assert "Removed: 0 of 1" in res.output


def test_timings_report_is_printed(sample_var: Path) -> None:
    res = CliRunner().invoke(
        cli,
        ["remove-deps", str(sample_var), "-d", "Author.Alpha.1", "--timings"],
        catch_exceptions=False,
    )

    assert res.exit_code == 0, res.output
    assert "archive.rewrite" in res.output
    assert "Total Elapsed Time" in res.output


def test_missing_package_exits_with_failure(tmp_path: Path) -> None:
    report_path = tmp_path / "removal.json"

    res = CliRunner().invoke(
        cli,
        ["remove-deps", str(tmp_path / "nope.var"), "-d", "A", "--json-out", str(report_path)],
        catch_exceptions=False,
    )

    assert res.exit_code == 2
    assert "Failed [not_found]" in res.output
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["success"] is False
    assert report["error_kind"] == "not_found"


def test_remove_deps_requires_a_dependency(sample_var: Path) -> None:
    res = CliRunner().invoke(cli, ["remove-deps", str(sample_var)])

    assert res.exit_code == 2
    assert "Provide at least one dependency" in res.output


def test_missing_deps_file_is_a_usage_error(sample_var: Path, tmp_path: Path) -> None:
    res = CliRunner().invoke(
        cli, ["remove-deps", str(sample_var), "--deps-file", str(tmp_path / "absent.txt")]
    )

    assert res.exit_code == 2
    assert "Dependency list file not found" in res.output
