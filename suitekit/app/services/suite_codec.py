from __future__ import annotations

import json
import logging
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, cast

import tomlkit
import yaml

from ..exceptions import DeserializeError
from ..models import BatchSuite, Suite, parse_suite_document
from ..utils.fs import read_text, write_text

# Suite (de)serialization.
#
# Four interchangeable encodings share one schema:
# - json / toml: generic structured formats
# - yaml / yml: line-oriented, with a literal-block layout for batch cases
#
# `.zip` is not an encoding; archives are only read through the mining config.

logger = logging.getLogger(__name__)

SerializableExtension = Literal["json", "toml", "yaml", "yml"]
SuiteFileExtension = Literal["json", "toml", "yaml", "yml", "zip"]

SERIALIZABLE_EXTENSIONS: tuple[SerializableExtension, ...] = ("json", "toml", "yaml", "yml")
SUITE_FILE_EXTENSIONS: tuple[SuiteFileExtension, ...] = ("json", "toml", "yaml", "yml", "zip")


def normalize_extension(value: str) -> SuiteFileExtension:
    v = str(value or "").strip().lower().lstrip(".")
    if v in SUITE_FILE_EXTENSIONS:
        return cast(SuiteFileExtension, v)
    raise ValueError(f"unsupported_extension:{value}")


def normalize_serializable_extension(value: str) -> SerializableExtension:
    v = normalize_extension(value)
    if v == "zip":
        raise ValueError(f"unsupported_extension:{value}")
    return cast(SerializableExtension, v)


@dataclass(frozen=True)
class SuiteFilePath:
    """A suite file path together with the encoding it is read/written in."""

    path: Path
    extension: SerializableExtension

    @classmethod
    def of(cls, path: Path) -> SuiteFilePath:
        return cls(path=Path(path), extension=normalize_serializable_extension(Path(path).suffix))

    def __str__(self) -> str:
        return str(self.path)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def decode_document(text: str, extension: SerializableExtension) -> Any:
    if extension == "json":
        return json.loads(text)
    if extension == "toml":
        return tomlkit.parse(text).unwrap()
    return yaml.safe_load(text)


def loads_suite(text: str, extension: SerializableExtension, *, path: Path | str = "<string>") -> Suite:
    try:
        return parse_suite_document(decode_document(text, extension))
    except (ValueError, yaml.YAMLError) as exc:
        # json/tomlkit decode errors and pydantic's ValidationError are ValueErrors.
        raise DeserializeError(path, exc) from exc


def load_suite(path: SuiteFilePath) -> Suite:
    logger.debug("load suite: %s (%s)", path.path, path.extension)
    return loads_suite(read_text(path.path), path.extension, path=path.path)


# ---------------------------------------------------------------------------
# Pretty-printing
# ---------------------------------------------------------------------------


def _is_block_safe(text: str) -> bool:
    # Text that a `|` block reproduces byte for byte: one trailing newline, no
    # leading indentation, printable characters plus ' ' and '\n' only.
    if not text.endswith("\n") or text.endswith("\n\n") or text.startswith((" ", "\n")):
        return False
    for c in text:
        if c in " \n":
            continue
        if c.isspace() or unicodedata.category(c).startswith("C"):
            return False
    return True


def _literal_block(text: str, indent: str) -> str:
    lines = text.split("\n")[:-1]
    return "".join(f"{indent}{line}\n" if line else "\n" for line in lines)


# NEL, LS and PS are line breaks to the YAML reader; only double quotes escape them.
_YAML_BREAKS = ("\x85", "\u2028", "\u2029")


class _SuiteDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if any(c in data for c in _YAML_BREAKS):
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')
    return dumper.represent_str(data)


_SuiteDumper.add_representer(str, _represent_str)


def _dump_yaml(doc: dict[str, Any]) -> str:
    return yaml.dump(doc, Dumper=_SuiteDumper, sort_keys=False, allow_unicode=True)


def _dump_batch_yaml(suite: BatchSuite) -> str:
    all_block_safe = bool(suite.cases) and all(
        _is_block_safe(c.input) and (c.output is None or _is_block_safe(c.output)) for c in suite.cases
    )
    if not all_block_safe:
        return _dump_yaml(suite.to_document())

    out = _dump_yaml(suite.head_document())
    out += "\ncases:\n"
    for case in suite.cases:
        out += "  - in: |\n"
        out += _literal_block(case.input, " " * 6)
        if case.output is not None:
            out += "    out: |\n"
            out += _literal_block(case.output, " " * 6)
    return out


def _dump_toml(doc: dict[str, Any]) -> str:
    # Plain values must come before tables, tables before arrays of tables.
    def rank(value: Any) -> int:
        if isinstance(value, dict):
            return 1
        if isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
            return 2
        return 0

    document = tomlkit.document()
    for key, value in sorted(doc.items(), key=lambda kv: rank(kv[1])):
        document.add(key, value)
    return tomlkit.dumps(document)


def dumps_suite(suite: Suite, extension: SerializableExtension) -> str:
    if extension == "json":
        return json.dumps(suite.to_document(), ensure_ascii=False, indent=2) + "\n"
    if extension == "toml":
        return _dump_toml(suite.to_document())
    if suite.type == "batch":
        return _dump_batch_yaml(cast(BatchSuite, suite))
    return _dump_yaml(suite.to_document())


def save_suite(suite: Suite, path: SuiteFilePath, *, name: str | None = None) -> str:
    """Serialize `suite` to `path` and return a one-line summary."""
    write_text(path.path, dumps_suite(suite, path.extension))
    summary = f"{name or path.path.stem}: Saved to {path.path} ({suite.describe()})"
    logger.info("%s", summary)
    return summary
