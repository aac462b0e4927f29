from __future__ import annotations

import io
import os
import zipfile
from pathlib import Path

import pytest


def _init_test_env() -> None:
    """
    Initialize isolated test env before importing suitekit modules.

    `SETTINGS` is created at import time and reads env vars only once, so
    any `SUITEKIT_*` variable from the developer's shell is dropped here.
    """

    for key in list(os.environ):
        if key.startswith("SUITEKIT_"):
            del os.environ[key]
    os.environ["SUITEKIT_ZIP_MAX_FILES"] = "100"


_init_test_env()


from suitekit.app.models import JudgingCommand  # noqa: E402
from suitekit.app.services.templates import PathTemplate  # noqa: E402


@pytest.fixture()
def path_template(tmp_path: Path) -> PathTemplate:
    return PathTemplate(template="{}.$extension", base_dir=tmp_path)


class RecordingTemplate:
    """Tester command template double that records every expansion."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, str]]] = []

    def expand(self, problem, variables=None):
        variables = dict(variables or {})
        self.calls.append((problem, variables))
        return JudgingCommand(command=f"tester {variables.get('*', '')}".rstrip(), working_dir=Path("/work"))


@pytest.fixture()
def recording_template() -> RecordingTemplate:
    return RecordingTemplate()


def _make_zip(path: Path, members: dict[str, str | bytes]) -> Path:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    path.write_bytes(buf.getvalue())
    return path


@pytest.fixture()
def make_zip():
    return _make_zip
