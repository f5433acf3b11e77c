"""Entry points: remove dependencies from a packed or unpacked package."""

from __future__ import annotations

import os
import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path

from vardeps.remover.archive import RewritePolicy, _discard_temp, rewrite_archive
from vardeps.remover.contracts import ErrorKind, RemovalResult
from vardeps.remover.descriptor import (
    DESCRIPTOR_NAME,
    MATCHER_SCANNER,
    MATCHERS,
    is_descriptor_name,
    patch_descriptor_bytes,
)
from vardeps.utils.logger import setup_logger
from vardeps.utils.timer import OperationTimer, measure

log = setup_logger(__name__)


def _validate(
    location: str | os.PathLike | None,
    dependency_names: Iterable[str] | None,
    matcher: str,
) -> tuple[str | None, list[str]]:
    """Check the entry-point arguments; returns (problem, names as a list)."""
    if location is None or not isinstance(location, (str, os.PathLike)):
        return "Invalid parameters: package location must be a path", []
    if str(location).strip() == "":
        return "Invalid parameters: package location is empty", []
    if dependency_names is None or isinstance(dependency_names, (str, bytes)):
        return "Invalid parameters: dependency names must be a list of strings", []
    try:
        names = list(dependency_names)
    except TypeError:
        return "Invalid parameters: dependency names must be a list of strings", []
    if len(names) == 0:
        return "Invalid parameters: no dependencies to remove", []
    if not all(isinstance(name, str) for name in names):
        return "Invalid parameters: dependency names must be a list of strings", []
    if matcher not in MATCHERS:
        return f"Invalid parameters: unknown matcher {matcher!r} (allowed: {list(MATCHERS)})", []
    return None, names


def find_loose_descriptor(folder: Path) -> Path | None:
    """Locate the descriptor inside an unpacked package folder (any case)."""
    exact = folder / DESCRIPTOR_NAME
    if exact.is_file():
        return exact
    for child in sorted(folder.iterdir()):
        if child.is_file() and is_descriptor_name(child.name):
            return child
    return None


def _read_archive_descriptors(archive_path: Path) -> list[bytes]:
    with zipfile.ZipFile(archive_path, "r") as zf:
        return [
            zf.read(info)
            for info in zf.infolist()
            if not info.is_dir() and is_descriptor_name(info.filename)
        ]


def patch_unpacked_folder(
    folder: str | Path,
    dependency_names: Sequence[str],
    *,
    matcher: str = MATCHER_SCANNER,
    temp_suffix: str = ".tmp",
    timer: OperationTimer | None = None,
) -> RemovalResult:
    """Strip dependencies from the loose descriptor of an unpacked package.

    The file is only written when something was removed, via a sibling
    temporary file that replaces it in one step.
    """
    folder = Path(folder)
    result = RemovalResult()
    descriptor = find_loose_descriptor(folder)
    if descriptor is None:
        return result.fail(
            ErrorKind.DESCRIPTOR_NOT_FOUND,
            f"No {DESCRIPTOR_NAME} found in unpacked folder: {folder}",
        )

    tmp_path = descriptor.with_name(descriptor.name + temp_suffix)
    try:
        with measure(timer, "descriptor.patch"):
            payload, removed = patch_descriptor_bytes(
                descriptor.read_bytes(), dependency_names, matcher=matcher
            )
        if removed:
            with measure(timer, "descriptor.write"):
                tmp_path.write_bytes(payload)
                tmp_path.replace(descriptor)
    except UnicodeDecodeError as exc:
        return result.fail(ErrorKind.FORMAT, f"Error modifying unpacked folder: {exc}")
    except OSError as exc:
        _discard_temp(tmp_path)
        return result.fail(ErrorKind.IO, f"Error modifying unpacked folder: {exc}")

    log.info("Patched %s: removed %d of %d dependencies", descriptor, len(removed), len(dependency_names))
    return result.succeed(removed)


def remove_dependencies(
    location: str | os.PathLike | None,
    dependency_names: Iterable[str] | None,
    *,
    policy: RewritePolicy | None = None,
    matcher: str = MATCHER_SCANNER,
    timer: OperationTimer | None = None,
) -> RemovalResult:
    """Remove ``dependency_names`` from the package at ``location``.

    ``location`` is either a package archive or an unpacked package folder.
    Never raises: every failure is reported through the returned result.

    Args:
        location: Archive file path or unpacked package directory.
        dependency_names: Exact dependency keys to remove, in order.
        policy: Archive compression policy (defaults to :class:`RewritePolicy`).
        matcher: ``scanner`` or ``pattern`` (see :mod:`vardeps.remover.descriptor`).
        timer: Optional timer receiving phase durations.

    Returns:
        RemovalResult with the names actually removed.
    """
    problem, names = _validate(location, dependency_names, matcher)
    if problem is not None:
        return RemovalResult().fail(ErrorKind.INVALID_INPUT, problem)

    policy = policy or RewritePolicy()
    try:
        path = Path(location)
        if path.is_file():
            return rewrite_archive(path, names, policy=policy, matcher=matcher, timer=timer)
        if path.is_dir():
            return patch_unpacked_folder(
                path,
                names,
                matcher=matcher,
                temp_suffix=policy.temp_suffix,
                timer=timer,
            )
        return RemovalResult().fail(ErrorKind.NOT_FOUND, f"Package path does not exist: {path}")
    except Exception as exc:
        log.exception("Unexpected failure removing dependencies from %s", location)
        return RemovalResult().fail(ErrorKind.UNEXPECTED, f"Error removing dependencies: {exc}")


def preview_removal(
    location: str | os.PathLike | None,
    dependency_names: Iterable[str] | None,
    *,
    matcher: str = MATCHER_SCANNER,
) -> RemovalResult:
    """Report which dependencies would be removed, without writing anything."""
    problem, names = _validate(location, dependency_names, matcher)
    if problem is not None:
        return RemovalResult().fail(ErrorKind.INVALID_INPUT, problem)

    result = RemovalResult()
    found: set[str] = set()
    try:
        path = Path(location)
        if path.is_file():
            blobs = _read_archive_descriptors(path)
        elif path.is_dir():
            descriptor = find_loose_descriptor(path)
            if descriptor is None:
                return result.fail(
                    ErrorKind.DESCRIPTOR_NOT_FOUND,
                    f"No {DESCRIPTOR_NAME} found in unpacked folder: {path}",
                )
            blobs = [descriptor.read_bytes()]
        else:
            return result.fail(ErrorKind.NOT_FOUND, f"Package path does not exist: {path}")
        for data in blobs:
            found.update(patch_descriptor_bytes(data, names, matcher=matcher)[1])
    except (zipfile.BadZipFile, UnicodeDecodeError) as exc:
        return result.fail(ErrorKind.FORMAT, f"Error reading package: {exc}")
    except OSError as exc:
        return result.fail(ErrorKind.IO, f"Error reading package: {exc}")
    except Exception as exc:
        log.exception("Unexpected failure previewing %s", location)
        return result.fail(ErrorKind.UNEXPECTED, f"Error removing dependencies: {exc}")
    return result.succeed([name for name in dict.fromkeys(names) if name in found])
