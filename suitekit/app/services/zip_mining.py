"""Mine batch cases out of a ZIP archive.

An archive is not self-describing: members are paired into cases by a
loader-wide `ZipConfig`. Each entry group has an `in` rule and an `out` rule
(regex + capture group); members captured with the same identifier on both
sides become one case named `{archive}:{identifier}`.
"""

from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Callable, Literal, Optional

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, NonNegativeInt

from ..exceptions import ArchiveReadError, DeserializeError, RegexGroupOutOfBoundsError
from ..models import EXACT, BatchCase, MatchField, MatchPolicy, expectation_for
from ..settings import SETTINGS
from ..utils.fs import read_text
from .suite_codec import decode_document, normalize_serializable_extension

logger = logging.getLogger(__name__)


class InvalidZip(Exception):
    pass


@dataclass(frozen=True)
class ZipLimits:
    max_files: int
    max_uncompressed_bytes: int
    max_single_file_bytes: int


def default_limits() -> ZipLimits:
    return ZipLimits(
        max_files=SETTINGS.zip_max_files,
        max_uncompressed_bytes=SETTINGS.zip_max_uncompressed_bytes,
        max_single_file_bytes=SETTINGS.zip_max_single_file_bytes,
    )


def _validate_infos(*, infos: list[zipfile.ZipInfo], limits: ZipLimits) -> None:
    # Checked before inflating anything.
    if len(infos) > limits.max_files:
        raise InvalidZip("too_many_files")
    total_uncompressed = 0
    for info in infos:
        if info.file_size > limits.max_single_file_bytes:
            raise InvalidZip("file_too_large")
        total_uncompressed += int(info.file_size or 0)
        if total_uncompressed > limits.max_uncompressed_bytes:
            raise InvalidZip("zip_too_large")


def read_members(
    zip_path: Path,
    limits: ZipLimits,
    *,
    wanted: Callable[[str], bool] | None = None,
) -> list[tuple[str, str]]:
    """Inflate file members once, in archive order.

    With `wanted`, members it rejects are neither inflated nor decoded.
    """
    try:
        with zipfile.ZipFile(zip_path) as zip_file:
            infos = zip_file.infolist()
            _validate_infos(infos=infos, limits=limits)
            members: list[tuple[str, str]] = []
            for info in infos:
                if info.is_dir():
                    continue
                if wanted is not None and not wanted(info.filename):
                    logger.debug("zip member skipped: %s", info.filename)
                    continue
                members.append((info.filename, zip_file.read(info).decode("utf-8")))
            return members
    except InvalidZip as exc:
        raise ArchiveReadError(zip_path, str(exc)) from exc
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, UnicodeDecodeError, NotImplementedError, RuntimeError) as exc:
        # RuntimeError: encrypted member; NotImplementedError: unsupported compression.
        raise ArchiveReadError(zip_path, exc) from exc


def _strip_slashes(value: object) -> object:
    # `/regex/` is accepted as well as the bare pattern.
    if isinstance(value, str) and len(value) >= 2 and value.startswith("/") and value.endswith("/"):
        return value[1:-1]
    return value


EntryPattern = Annotated[re.Pattern, BeforeValidator(_strip_slashes)]
SortKey = Literal["dictionary", "number"]


_UNSIGNED = re.compile(r"\+?[0-9]+")


def _number_key(identifier: str) -> tuple[int, int]:
    # Numbers first, in numeric order; every non-number compares equal.
    if _UNSIGNED.fullmatch(identifier):
        return (0, int(identifier))
    return (1, 0)


class ZipEntryRule(BaseModel):
    model_config = ConfigDict(extra="forbid")

    entry: EntryPattern
    match_group: NonNegativeInt
    crlf_to_lf: bool = False

    def identifier(self, member_name: str) -> str | None:
        m = self.entry.search(member_name)
        if m is None:
            return None
        if self.match_group > self.entry.groups:
            raise RegexGroupOutOfBoundsError(self.match_group)
        captured = m.group(self.match_group)
        if captured is None:
            raise RegexGroupOutOfBoundsError(self.match_group)
        return captured

    def matches(self, member_name: str) -> bool:
        return self.entry.search(member_name) is not None

    def content(self, text: str) -> str:
        if self.crlf_to_lf and "\r\n" in text:
            return text.replace("\r\n", "\n")
        return text


class ZipEntryGroup(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    sort: list[SortKey] = Field(default_factory=list)
    input: ZipEntryRule = Field(alias="in")
    output: ZipEntryRule = Field(alias="out")

    def pair(self, members: list[tuple[str, str]]) -> list[tuple[str, str, str]]:
        """Return sorted (identifier, input, output) triples."""
        inputs: dict[str, str] = {}
        outputs: dict[str, str] = {}
        order: dict[str, None] = {}
        for name, text in members:
            ident = self.input.identifier(name)
            if ident is not None:
                inputs[ident] = self.input.content(text)
                order.setdefault(ident)
            ident = self.output.identifier(name)
            if ident is not None:
                outputs[ident] = self.output.content(text)
                order.setdefault(ident)

        pairs: list[tuple[str, str, str]] = []
        for ident in order:
            if ident in inputs and ident in outputs:
                pairs.append((ident, inputs[ident], outputs[ident]))
            else:
                logger.debug("zip entry without counterpart dropped: %s", ident)

        for key in self.sort:
            if key == "dictionary":
                pairs.sort(key=lambda t: t[0])
            else:
                pairs.sort(key=lambda t: _number_key(t[0]))
        return pairs


class ZipConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timelimit: Optional[NonNegativeInt] = None
    match: MatchField = EXACT
    entries: list[ZipEntryGroup] = Field(default_factory=list)

    def matches(self, member_name: str) -> bool:
        return any(g.input.matches(member_name) or g.output.matches(member_name) for g in self.entries)

    def load(self, zip_path: Path, *, filename: str | None = None, limits: ZipLimits | None = None) -> list[BatchCase]:
        if not self.entries or not zip_path.exists():
            return []
        filename = filename or zip_path.name
        members = read_members(zip_path, limits or default_limits(), wanted=self.matches)
        policy: MatchPolicy = self.match
        cases: list[BatchCase] = []
        for group in self.entries:
            for ident, input_text, output_text in group.pair(members):
                cases.append(
                    BatchCase(
                        name=f"{filename}:{ident}",
                        input=input_text,
                        expected=expectation_for(policy, output_text),
                        timelimit_ms=self.timelimit,
                    )
                )
        logger.debug("mined %d case(s) from %s", len(cases), zip_path)
        return cases


def load_zip_config(path: Path) -> ZipConfig:
    """Read mining rules from a json/toml/yaml/yml file."""
    extension = normalize_serializable_extension(path.suffix)
    try:
        return ZipConfig.model_validate(decode_document(read_text(path), extension))
    except (ValueError, yaml.YAMLError) as exc:
        raise DeserializeError(path, exc) from exc
