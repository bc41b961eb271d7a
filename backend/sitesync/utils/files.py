from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

DOCUMENT_SUFFIXES = (".md", ".html")


def find_document_files(base_path: Path, suffixes: tuple[str, ...] = DOCUMENT_SUFFIXES) -> list[Path]:
    if not base_path.is_dir():
        raise FileNotFoundError(f"Documentation root {base_path} does not exist")
    files = [p for p in base_path.glob("**/*") if p.is_file() and p.suffix.lower() in suffixes]
    return sorted(files)


def atomic_write_text(path: Path, text: str) -> None:
    """
    Replace `path` with `text` in one step.

    Writes to a temporary file in the same directory, then renames it over
    the target so readers never observe a partially written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def atomic_write_json(path: Path, data: Any) -> None:
    atomic_write_text(path, json.dumps(data, indent=2, sort_keys=False) + "\n")
