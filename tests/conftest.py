from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

ENTRY_TIME = (2021, 3, 14, 15, 9, 26)

SAMPLE_META = """{
  "licenseType" : "CC BY",
  "creatorName" : "Author",
  "dependencies" : {
    "Author.Alpha.1" : {
      "licenseType" : "CC BY",
      "dependencies" : {
      }
    },
    "Author.Beta.latest" : {
      "licenseType" : "FC",
      "dependencies" : {
        "Other.Gamma.3" : {
          "licenseType" : "PC"
        }
      }
    },
    "Author.Delta.2" : {
      "licenseType" : "CC BY-SA"
    }
  },
  "customOptions" : {
    "preloadMorphs" : "false"
  }
}
"""


def _build_var(path: Path, entries: list[tuple[str, bytes]], *, comment: bytes = b"") -> Path:
    """Write a zip with fixed timestamps; names ending in "/" become directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.comment = comment
        for name, payload in entries:
            zf.writestr(zipfile.ZipInfo(name, date_time=ENTRY_TIME), payload)
    return path


def _read_entries(path: Path) -> list[tuple[str, bytes]]:
    with zipfile.ZipFile(path, "r") as zf:
        return [(info.filename, zf.read(info)) for info in zf.infolist()]


@pytest.fixture()
def build_var():
    return _build_var


@pytest.fixture()
def read_entries():
    return _read_entries


@pytest.fixture()
def entry_time() -> tuple[int, ...]:
    return ENTRY_TIME


@pytest.fixture()
def sample_meta() -> str:
    return SAMPLE_META


@pytest.fixture()
def sample_var(tmp_path: Path) -> Path:
    return _build_var(
        tmp_path / "Author.Scene.1.var",
        [
            ("Saves/", b""),
            ("meta.json", SAMPLE_META.encode("utf-8")),
            ("Saves/scene/Scene.json", b'{"atoms": []}'),
            ("Saves/scene/Scene.jpg", b"\xff\xd8\xff\xe0fake-jpeg" * 8),
            ("Custom/Images/image.png", b"\x89PNG\r\n\x1a\nfake-png" * 8),
            ("Custom/Scripts/script.txt", b"print('hello')\n" * 32),
            ("Custom/Sounds/voice.mp3", b"ID3fake-mp3" * 8),
        ],
    )


@pytest.fixture()
def unpacked_package(tmp_path: Path) -> Path:
    folder = tmp_path / "Author.Scene.1"
    (folder / "Saves" / "scene").mkdir(parents=True)
    (folder / "meta.json").write_bytes(SAMPLE_META.encode("utf-8"))
    (folder / "Saves" / "scene" / "Scene.json").write_text('{"atoms": []}', encoding="utf-8")
    return folder
