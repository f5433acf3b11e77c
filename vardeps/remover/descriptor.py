"""Remove dependency entries from descriptor text without building a parse tree.

An entry is a ``"<name>": { ... }`` pair. Two matchers locate it:

``scanner``
    Walks the text tracking string literals and brace depth, so it removes
    objects nested to any depth and ignores braces that appear inside strings.
``pattern``
    A bounded regular expression that allows a single level of nested objects
    and knows nothing about string literals. Entries nested deeper are not
    matched and stay in the text.

Everything outside the removed spans is kept byte-for-byte, which is why the
text is never parsed and re-serialized.
"""

from __future__ import annotations

import codecs
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from vardeps.utils.logger import setup_logger

log = setup_logger(__name__)

DESCRIPTOR_NAME = "meta.json"
MATCHER_SCANNER = "scanner"
MATCHER_PATTERN = "pattern"
MATCHERS = (MATCHER_SCANNER, MATCHER_PATTERN)

# Optional comma, trailing blanks and one line break after the closing brace.
_TAIL_RE = re.compile(r",?[ \t]*(?:\r?\n)?")

Span = tuple[int, int]


@dataclass
class DescriptorPatch:
    text: str
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed)


def is_descriptor_name(name: str) -> bool:
    """True when the base name of an entry/file is the descriptor (any case)."""
    return PurePosixPath(name.replace("\\", "/")).name.lower() == DESCRIPTOR_NAME


def _inside_string(text: str, pos: int) -> bool:
    in_string = False
    escaped = False
    for ch in text[:pos]:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
    return in_string


def _closing_brace(text: str, open_pos: int) -> int | None:
    """Index just past the brace that balances ``text[open_pos]``."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(open_pos, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def _scanned_span(text: str, name: str) -> Span | None:
    key_re = re.compile(r'"' + re.escape(name) + r'"\s*:\s*\{')
    for m in key_re.finditer(text):
        if _inside_string(text, m.start()):
            continue
        end = _closing_brace(text, m.end() - 1)
        if end is None:
            continue
        stop = _TAIL_RE.match(text, end).end()
        start = m.start()
        if text[stop - 1 : stop] == "\n":
            line_start = text.rfind("\n", 0, start) + 1
            if text[line_start:start].strip() == "":
                start = line_start
        return start, stop
    return None


def _entry_pattern(name: str) -> re.Pattern[str]:
    return re.compile(
        r'"'
        + re.escape(name)
        + r'"[ \t]*:[ \t]*\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\},?[ \t]*\r?\n?'
    )


def _pattern_span(text: str, name: str) -> Span | None:
    m = _entry_pattern(name).search(text)
    if m is None:
        return None
    return m.start(), m.end()


_SPAN_FINDERS: dict[str, Callable[[str, str], Span | None]] = {
    MATCHER_SCANNER: _scanned_span,
    MATCHER_PATTERN: _pattern_span,
}


def strip_trailing_commas(text: str) -> str:
    """Drop commas that are followed (across whitespace) by ``}`` or ``]``.

    Commas inside string literals are left alone.
    """
    out: list[str] = []
    in_string = False
    escaped = False
    n = len(text)
    for i, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in "}]":
                continue
        out.append(ch)
    return "".join(out)


def patch_descriptor(
    text: str,
    dependency_names: Iterable[str],
    *,
    matcher: str = MATCHER_SCANNER,
) -> DescriptorPatch:
    """Remove the first ``"<name>": {...}`` entry for each requested name.

    Names are processed in the given order; ``removed`` lists those that were
    found. Absent names are skipped. A name is removed at most once per call,
    even if the descriptor (wrongly) repeats the key.
    """
    try:
        find_span = _SPAN_FINDERS[matcher]
    except KeyError:
        raise ValueError(f"Unknown matcher: {matcher} (allowed: {list(MATCHERS)})") from None

    patched = text
    removed: list[str] = []
    for name in dependency_names:
        if name in removed:
            continue
        span = find_span(patched, name)
        if span is None:
            log.debug("Dependency not present in descriptor: %s", name)
            continue
        start, stop = span
        patched = patched[:start] + patched[stop:]
        removed.append(name)
        if find_span(patched, name) is not None:
            log.warning("Duplicate dependency key in descriptor, only the first was removed: %s", name)

    if removed:
        patched = strip_trailing_commas(patched)
    return DescriptorPatch(text=patched, removed=removed)


def patch_descriptor_bytes(
    data: bytes,
    dependency_names: Iterable[str],
    *,
    matcher: str = MATCHER_SCANNER,
) -> tuple[bytes, list[str]]:
    """Byte-level wrapper around :func:`patch_descriptor`.

    Decodes UTF-8 (keeping a BOM if present) and returns ``data`` itself when
    nothing was removed.
    """
    bom = data.startswith(codecs.BOM_UTF8)
    body = data[len(codecs.BOM_UTF8) :] if bom else data
    patch = patch_descriptor(body.decode("utf-8"), dependency_names, matcher=matcher)
    if not patch.changed:
        return data, []
    out = patch.text.encode("utf-8")
    return (codecs.BOM_UTF8 + out if bom else out), patch.removed
