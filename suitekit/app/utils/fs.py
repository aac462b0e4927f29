from __future__ import annotations

import os
from pathlib import Path

from ..exceptions import FileIoError


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileIoError("read", path, exc) from exc


def write_text(path: Path, text: str) -> None:
    # Write to a sibling temp file, then swap it in; a failed write leaves the
    # original file untouched.
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as exc:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        raise FileIoError("write", path, exc) from exc
