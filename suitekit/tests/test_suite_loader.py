from __future__ import annotations

from pathlib import Path

import pytest

from suitekit.app.exceptions import DeserializeError, DifferentTypesOfSuitesError, NoFileError, UnsubmittableError
from suitekit.app.models import AnyExpected, ExactExpected
from suitekit.app.services.suite_loader import (
    DownloadDestinations,
    SuiteCaseLoader,
    build_download_destinations,
    build_loader,
)
from suitekit.app.services.zip_mining import ZipConfig
from suitekit.app.settings import Settings

BATCH_YAML = """\
type: batch
timelimit: 2000
match: exact
cases:
  - in: |
      1 2
    out: |
      3
  - in: |
      4 5
"""

ZIP_CONFIG = {
    "entries": [
        {
            "sort": ["number"],
            "in": {"entry": r"/^in\/(\d+)\.txt$/", "match_group": 1},
            "out": {"entry": r"/^out\/(\d+)\.txt$/", "match_group": 1},
        }
    ]
}


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_single_yaml(path_template, tmp_path: Path):
    _write(tmp_path / "a.yaml", BATCH_YAML)
    loaded, display = SuiteCaseLoader(path_template=path_template, extensions=["yaml"]).load_merging("a")
    assert loaded.kind == "batch"
    assert loaded.names() == ["a.yaml[0]", "a.yaml[1]"]
    assert loaded.cases[0].expected == ExactExpected(text="3\n")
    assert loaded.cases[1].expected == AnyExpected(example=None)
    assert display == str(tmp_path / "a.yaml")


def test_merge_follows_extension_priority(path_template, tmp_path: Path):
    _write(tmp_path / "a.yaml", BATCH_YAML)
    _write(tmp_path / "a.json", '{"type": "batch", "match": "any", "cases": [{"in": "9\\n"}]}')
    loader = SuiteCaseLoader(path_template=path_template, extensions=["json", "toml", "yaml", "yml"])
    loaded, display = loader.load_merging("a")
    assert loaded.names() == ["a.json[0]", "a.yaml[0]", "a.yaml[1]"]
    assert display == f"{tmp_path}/a.{{json,yaml}}"


def test_duplicate_extensions_probe_once(path_template, tmp_path: Path):
    _write(tmp_path / "a.yaml", BATCH_YAML)
    loader = SuiteCaseLoader(path_template=path_template, extensions=["yaml", ".YAML", "yaml"])
    assert [ext for _, ext in loader.candidates("a")] == ["yaml", "zip"]
    loaded, _ = loader.load_merging("a")
    assert len(loaded) == 2


def test_batch_and_interactive_never_mix(path_template, tmp_path: Path, recording_template):
    _write(tmp_path / "a.yaml", BATCH_YAML)
    _write(tmp_path / "a.json", '{"type": "interactive", "tester": "py", "each_args": [["1"]]}')
    loader = SuiteCaseLoader(
        path_template=path_template,
        extensions=["json", "yaml"],
        tester_commands={"py": recording_template},
    )
    with pytest.raises(DifferentTypesOfSuitesError):
        loader.load_merging("a")


def test_interactive_suite(path_template, tmp_path: Path, recording_template):
    _write(tmp_path / "b.toml", 'type = "interactive"\ntimelimit = 500\ntester = "py"\neach_args = [["1", "2"], ["3"]]\n')
    loader = SuiteCaseLoader(path_template=path_template, extensions=["toml"], tester_commands={"py": recording_template})
    loaded, display = loader.load_merging("b")
    assert loaded.kind == "interactive"
    assert loaded.names() == ["b.toml[0]", "b.toml[1]"]
    assert [c.tester.command for c in loaded] == ["tester 1 2", "tester 3"]
    assert display == str(tmp_path / "b.toml")


def test_no_file_lists_every_candidate(path_template, tmp_path: Path):
    loader = SuiteCaseLoader(path_template=path_template, extensions=["json", "toml", "yaml", "yml"])
    with pytest.raises(NoFileError) as e:
        loader.load_merging("a")
    assert e.value.tried_paths == tuple(str(tmp_path / f"a.{ext}") for ext in ("json", "toml", "yaml", "yml", "zip"))
    assert e.value.display == f"{tmp_path}/a.{{json,toml,yaml,yml,zip}}"


def test_empty_batch_counts_as_no_file(path_template, tmp_path: Path):
    _write(tmp_path / "a.yaml", "type: batch\ncases: []\n")
    with pytest.raises(NoFileError):
        SuiteCaseLoader(path_template=path_template, extensions=["yaml"]).load_merging("a")


def test_unsubmittable_suite_stops_loading(path_template, tmp_path: Path):
    _write(tmp_path / "a.json", '{"type": "unsubmittable"}')
    with pytest.raises(UnsubmittableError) as e:
        SuiteCaseLoader(path_template=path_template, extensions=["json"]).load_merging("a")
    assert e.value.target == "a"


def test_broken_file_is_reported(path_template, tmp_path: Path):
    _write(tmp_path / "a.yml", "type: batch\ncases: [\n")
    with pytest.raises(DeserializeError) as e:
        SuiteCaseLoader(path_template=path_template, extensions=["yml"]).load_merging("a")
    assert e.value.path == tmp_path / "a.yml"


def test_zip_cases_are_merged(path_template, tmp_path: Path, make_zip):
    _write(tmp_path / "a.yaml", BATCH_YAML)
    make_zip(tmp_path / "a.zip", {"in/10.txt": "x\n", "out/10.txt": "y\n", "in/2.txt": "p\n", "out/2.txt": "q\n"})
    loader = SuiteCaseLoader(
        path_template=path_template,
        extensions=["yaml"],
        zip_config=ZipConfig.model_validate(ZIP_CONFIG),
    )
    loaded, display = loader.load_merging("a")
    assert loaded.names() == ["a.yaml[0]", "a.yaml[1]", "a.zip:2", "a.zip:10"]
    assert display == f"{tmp_path}/a.{{yaml,zip}}"


def test_zip_without_matches_is_not_shown(path_template, tmp_path: Path, make_zip):
    _write(tmp_path / "a.yaml", BATCH_YAML)
    make_zip(tmp_path / "a.zip", {"readme.md": "hello\n"})
    loader = SuiteCaseLoader(
        path_template=path_template,
        extensions=["yaml"],
        zip_config=ZipConfig.model_validate(ZIP_CONFIG),
    )
    loaded, display = loader.load_merging("a")
    assert len(loaded) == 2
    assert display == str(tmp_path / "a.yaml")


def test_zip_only(path_template, tmp_path: Path, make_zip):
    make_zip(tmp_path / "a.zip", {"in/1.txt": "x\n", "out/1.txt": "y\n"})
    loader = SuiteCaseLoader(path_template=path_template, extensions=[], zip_config=ZipConfig.model_validate(ZIP_CONFIG))
    loaded, display = loader.load_merging("a")
    assert loaded.names() == ["a.zip:1"]
    assert display == str(tmp_path / "a.zip")


def test_download_destinations(path_template, tmp_path: Path):
    dest = DownloadDestinations(path_template=path_template, scraping_extension="toml")
    target = dest.scraping("abc001_a")
    assert target.path == tmp_path / "abc001_a.toml"
    assert target.extension == "toml"
    assert dest.zip("abc001_a") == tmp_path / "abc001_a.zip"


def test_build_loader_from_settings(tmp_path: Path, make_zip):
    (tmp_path / "tests").mkdir()
    _write(
        tmp_path / "zip.yaml",
        "entries:\n"
        "  - sort: [number]\n"
        "    in: {entry: '^in/(\\d+)\\.txt$', match_group: 1}\n"
        "    out: {entry: '^out/(\\d+)\\.txt$', match_group: 1}\n",
    )
    _write(tmp_path / "tests" / "p.yml", BATCH_YAML)
    make_zip(tmp_path / "tests" / "p.zip", {"in/1.txt": "x\n", "out/1.txt": "y\n"})
    settings = Settings(
        suite_path_template="tests/{}.$extension",
        base_dir=str(tmp_path),
        extensions_on_judging=["yml"],
        zip_config_path="zip.yaml",
    )
    loaded, _ = build_loader(settings).load_merging("p")
    assert loaded.names() == ["p.yml[0]", "p.yml[1]", "p.zip:1"]

    dest = build_download_destinations(settings)
    assert dest.scraping("p").path == tmp_path / "tests" / "p.yaml"


def test_default_settings():
    settings = Settings()
    assert settings.extension_on_downloading == "yaml"
    assert settings.extensions_on_judging == ["json", "toml", "yaml", "yml"]
    assert settings.zip_max_files == 100
