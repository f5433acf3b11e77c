"""Service-layer orchestration for `remove-deps`."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vardeps.remover.archive import RewritePolicy
from vardeps.remover.contracts import RemovalReport, RemovalResult
from vardeps.remover.descriptor import MATCHER_SCANNER
from vardeps.remover.dispatch import preview_removal, remove_dependencies
from vardeps.utils.timer import OperationTimer

EmitFn = Callable[[str, bool], None]


@dataclass(slots=True)
class RemoveDepsServiceRequest:
    location: str
    dependency_names: list[str]
    matcher: str | None
    dry_run: bool
    json_out: str | None
    show_timings: bool
    cfg: Any | None


def _resolve_matcher(request: RemoveDepsServiceRequest) -> str:
    if request.matcher:
        return str(request.matcher).strip().lower()
    if request.cfg is not None and request.cfg.get("descriptor") is not None:
        return str(request.cfg.descriptor.get("matcher", MATCHER_SCANNER)).strip().lower()
    return MATCHER_SCANNER


def _mode_label(location: str) -> str:
    path = Path(location)
    if path.is_file():
        return "archive"
    if path.is_dir():
        return "unpacked"
    return "missing"


def run_remove_deps(request: RemoveDepsServiceRequest, *, emit: EmitFn) -> RemovalResult:
    """Execute `remove-deps` orchestration without Click-bound logic.

    Raises SystemExit(2) when the removal fails.
    """
    matcher = _resolve_matcher(request)
    timer = OperationTimer()
    emit(f"Package: {request.location}", False)
    emit(f"Mode: {_mode_label(request.location)}{' (dry run)' if request.dry_run else ''}", False)
    emit(f"Matcher: {matcher}", False)

    with timer.measure("remove-deps"):
        if request.dry_run:
            result = preview_removal(request.location, request.dependency_names, matcher=matcher)
        else:
            result = remove_dependencies(
                request.location,
                request.dependency_names,
                policy=RewritePolicy.from_config(request.cfg),
                matcher=matcher,
                timer=timer,
            )

    report = RemovalReport.from_result(
        result,
        location=request.location,
        requested=request.dependency_names,
        dry_run=request.dry_run,
    )

    if result.success:
        verb = "Would remove" if request.dry_run else "Removed"
        emit(f"{verb}: {result.removed_count} of {len(request.dependency_names)}", False)
        for name in result.removed_dependencies:
            emit(f"  - {name}", False)
        if report.skipped:
            emit(f"Not present: {len(report.skipped)}", False)
            for name in report.skipped:
                emit(f"  - {name}", False)
    else:
        emit(f"Failed [{report.error_kind}]: {result.error_message}", True)

    if request.json_out is not None and str(request.json_out).strip() != "":
        out_path = Path(request.json_out).expanduser().resolve()
        report.write_json(out_path)
        emit(f"Wrote: {out_path}", False)

    if request.show_timings:
        emit(timer.report(), False)

    if not result.success:
        raise SystemExit(2)
    return result
