"""Rewrite a package archive with dependencies stripped from its descriptor.

The archive is rebuilt entry by entry into ``<archive><temp_suffix>`` next to
the original. Only after the new archive has been written and closed is it
moved over the original, so a failure at any point leaves the original as it
was and removes the partial temporary file.
"""

from __future__ import annotations

import shutil
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, Any

from vardeps.remover.contracts import ErrorKind, RemovalResult
from vardeps.remover.descriptor import (
    DESCRIPTOR_NAME,
    MATCHER_SCANNER,
    is_descriptor_name,
    patch_descriptor_bytes,
)
from vardeps.utils.logger import setup_logger
from vardeps.utils.timer import OperationTimer, measure

log = setup_logger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024
DEFAULT_STORED_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".mp3", ".mp4", ".ogg", ".assetbundle"}
)


@dataclass(frozen=True)
class RewritePolicy:
    """Per-entry compression choices and the temporary file naming."""

    stored_extensions: frozenset[str] = DEFAULT_STORED_EXTENSIONS
    deflate_level: int = 6
    descriptor_level: int = 9
    temp_suffix: str = ".tmp"

    @classmethod
    def from_config(cls, cfg: Any | None) -> RewritePolicy:
        if cfg is None or cfg.get("archive") is None:
            return cls()
        section = cfg.archive
        default = cls()
        extensions = section.get("stored_extensions")
        return cls(
            stored_extensions=(
                frozenset(_normalize_extension(e) for e in extensions)
                if extensions is not None
                else default.stored_extensions
            ),
            deflate_level=int(section.get("deflate_level", default.deflate_level)),
            descriptor_level=int(section.get("descriptor_level", default.descriptor_level)),
            temp_suffix=str(section.get("temp_suffix", default.temp_suffix) or default.temp_suffix),
        )

    def compression_for(self, name: str) -> tuple[int, int | None]:
        """(compress_type, compress_level) for a non-descriptor entry."""
        if PurePosixPath(name).suffix.lower() in self.stored_extensions:
            return zipfile.ZIP_STORED, None
        return zipfile.ZIP_DEFLATED, self.deflate_level

    def temp_path_for(self, path: Path) -> Path:
        return path.with_name(path.name + self.temp_suffix)


def _normalize_extension(raw: str) -> str:
    ext = str(raw).strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _set_compress_level(info: zipfile.ZipInfo, level: int | None) -> None:
    # ZipFile.open(info, "w") takes the level from the ZipInfo alone, so it has to be
    # set here. Public attribute from Python 3.13; older releases only have the
    # private slot.
    if hasattr(info, "compress_level"):
        info.compress_level = level
    else:
        info._compresslevel = level


def _clone_info(
    info: zipfile.ZipInfo,
    *,
    compress_type: int,
    compress_level: int | None,
) -> zipfile.ZipInfo:
    out = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    out.comment = info.comment
    out.create_system = info.create_system
    out.external_attr = info.external_attr
    out.file_size = info.file_size
    out.compress_type = compress_type
    _set_compress_level(out, compress_level)
    return out


def _copy_entry(source: IO[bytes], dest: IO[bytes]) -> None:
    shutil.copyfileobj(source, dest, COPY_CHUNK_SIZE)


def _discard_temp(tmp_path: Path) -> None:
    try:
        tmp_path.unlink(missing_ok=True)
    except OSError as exc:
        log.warning("Could not remove temporary archive %s: %s", tmp_path, exc)


def _error_kind(exc: BaseException) -> ErrorKind:
    if isinstance(exc, (zipfile.BadZipFile, zipfile.LargeZipFile, UnicodeDecodeError)):
        return ErrorKind.FORMAT
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    return ErrorKind.IO


def rewrite_archive(
    archive_path: str | Path,
    dependency_names: Iterable[str],
    *,
    policy: RewritePolicy | None = None,
    matcher: str = MATCHER_SCANNER,
    timer: OperationTimer | None = None,
) -> RemovalResult:
    """Strip ``dependency_names`` from the descriptor inside ``archive_path``.

    A missing descriptor entry is not an error: every entry is copied and the
    result reports zero removals. I/O and format errors produce a failed
    result; anything else propagates after the temporary file is removed.
    """
    policy = policy or RewritePolicy()
    archive_path = Path(archive_path)
    names = list(dependency_names)
    tmp_path = policy.temp_path_for(archive_path)
    result = RemovalResult()
    removed: set[str] = set()
    descriptor_seen = False

    try:
        with measure(timer, "archive.rewrite"):
            with zipfile.ZipFile(archive_path, "r") as src, zipfile.ZipFile(
                tmp_path, "w", allowZip64=True
            ) as dst:
                dst.comment = src.comment
                for info in src.infolist():
                    if info.is_dir():
                        dst.writestr(
                            _clone_info(info, compress_type=zipfile.ZIP_STORED, compress_level=None),
                            b"",
                        )
                        continue

                    if is_descriptor_name(info.filename):
                        descriptor_seen = True
                        with measure(timer, "descriptor.patch"):
                            payload, found = patch_descriptor_bytes(
                                src.read(info),
                                names,
                                matcher=matcher,
                            )
                        removed.update(found)
                        dst.writestr(
                            _clone_info(
                                info,
                                compress_type=zipfile.ZIP_DEFLATED,
                                compress_level=policy.descriptor_level,
                            ),
                            payload,
                            compress_type=zipfile.ZIP_DEFLATED,
                            compresslevel=policy.descriptor_level,
                        )
                        continue

                    compress_type, compress_level = policy.compression_for(info.filename)
                    clone = _clone_info(info, compress_type=compress_type, compress_level=compress_level)
                    with src.open(info, "r") as fin, dst.open(clone, "w") as fout:
                        _copy_entry(fin, fout)

        with measure(timer, "archive.commit"):
            tmp_path.replace(archive_path)
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, UnicodeDecodeError) as exc:
        _discard_temp(tmp_path)
        log.error("Archive rewrite failed for %s: %s", archive_path, exc)
        return result.fail(_error_kind(exc), f"Error modifying archive: {exc}")
    except Exception:
        _discard_temp(tmp_path)
        raise

    if not descriptor_seen:
        log.warning("No %s entry in %s; archive rewritten unchanged", DESCRIPTOR_NAME, archive_path)
    log.info(
        "Rewrote %s: removed %d of %d dependencies",
        archive_path,
        len(removed),
        len(names),
    )
    return result.succeed([name for name in dict.fromkeys(names) if name in removed])
