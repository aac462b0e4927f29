from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Iterable, Iterator, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, NonNegativeInt, PlainValidator, TypeAdapter

from .exceptions import SuiteIsNotSimpleError, UnsubmittableError

# Suite data model.
#
# - Suite documents (batch / interactive / unsubmittable) are pydantic models so
#   that every encoding goes through one schema.
# - Match policies, expectations and materialized cases are frozen dataclasses;
#   cases are handed to the runner and never mutated afterwards.
# - An unset float error bound is NaN.

NAN = float("nan")

SuiteKind = Literal["batch", "interactive", "unsubmittable"]


def same_float(a: float, b: float) -> bool:
    return a == b or (math.isnan(a) and math.isnan(b))


def _float_key(x: float) -> Any:
    return "nan" if math.isnan(x) else x


# ---------------------------------------------------------------------------
# Match policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnyMatch:
    pass


@dataclass(frozen=True)
class ExactMatch:
    pass


@dataclass(frozen=True, eq=False)
class FloatMatch:
    relative_error: float = NAN
    absolute_error: float = NAN

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FloatMatch):
            return NotImplemented
        return same_float(self.relative_error, other.relative_error) and same_float(
            self.absolute_error, other.absolute_error
        )

    def __hash__(self) -> int:
        return hash(("float", _float_key(self.relative_error), _float_key(self.absolute_error)))


MatchPolicy = Union[AnyMatch, ExactMatch, FloatMatch]

ANY = AnyMatch()
EXACT = ExactMatch()


def _error_bound(value: Any) -> float:
    if value is None:
        return NAN
    if isinstance(value, bool):
        raise ValueError(f"invalid error bound: {value!r}")
    return float(value)


def parse_match_policy(value: Any) -> MatchPolicy:
    """Parse `any` / `exact` / `{float: {relative_error, absolute_error}}`."""
    if isinstance(value, (AnyMatch, ExactMatch, FloatMatch)):
        return value
    if isinstance(value, str):
        v = value.strip()
        if v == "any":
            return ANY
        if v == "exact":
            return EXACT
        if v == "float":
            return FloatMatch()
        raise ValueError(f"unknown match policy: {value!r}")
    if isinstance(value, dict) and len(value) == 1:
        ((key, body),) = value.items()
        if key in ("any", "exact") and not body:
            return parse_match_policy(key)
        if key == "float":
            body = body or {}
            if not isinstance(body, dict):
                raise ValueError(f"invalid float policy: {body!r}")
            unknown = set(body) - {"relative_error", "absolute_error"}
            if unknown:
                raise ValueError(f"unknown float policy keys: {sorted(unknown)}")
            return FloatMatch(
                relative_error=_error_bound(body.get("relative_error")),
                absolute_error=_error_bound(body.get("absolute_error")),
            )
    raise ValueError(f"invalid match policy: {value!r}")


def dump_match_policy(policy: MatchPolicy) -> str | dict[str, Any]:
    if isinstance(policy, AnyMatch):
        return "any"
    if isinstance(policy, ExactMatch):
        return "exact"
    # NaN has no portable spelling in JSON/TOML; an absent bound reads back as NaN.
    body: dict[str, float] = {}
    if not math.isnan(policy.relative_error):
        body["relative_error"] = policy.relative_error
    if not math.isnan(policy.absolute_error):
        body["absolute_error"] = policy.absolute_error
    return {"float": body}


MatchField = Annotated[MatchPolicy, PlainValidator(parse_match_policy)]


# ---------------------------------------------------------------------------
# Expectation (attached to materialized batch cases)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnyExpected:
    example: str | None = None


@dataclass(frozen=True)
class ExactExpected:
    text: str


@dataclass(frozen=True, eq=False)
class FloatExpected:
    text: str
    absolute_error: float = NAN
    relative_error: float = NAN

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FloatExpected):
            return NotImplemented
        return (
            self.text == other.text
            and same_float(self.absolute_error, other.absolute_error)
            and same_float(self.relative_error, other.relative_error)
        )

    def __hash__(self) -> int:
        return hash((self.text, _float_key(self.absolute_error), _float_key(self.relative_error)))


Expectation = Union[AnyExpected, ExactExpected, FloatExpected]


def expectation_for(policy: MatchPolicy, output: str | None) -> Expectation:
    if isinstance(policy, AnyMatch):
        return AnyExpected(example=output)
    if output is None:
        return AnyExpected(example=None)
    if isinstance(policy, ExactMatch):
        return ExactExpected(text=output)
    return FloatExpected(
        text=output,
        absolute_error=policy.absolute_error,
        relative_error=policy.relative_error,
    )


# ---------------------------------------------------------------------------
# Commands and materialized cases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JudgingCommand:
    command: str
    working_dir: Path


@dataclass(frozen=True)
class BuildCommand:
    command: str
    working_dir: Path


@dataclass(frozen=True)
class BatchCase:
    name: str
    input: str
    expected: Expectation
    timelimit_ms: int | None = None


@dataclass(frozen=True)
class InteractiveCase:
    name: str
    tester: JudgingCommand
    tester_build: BuildCommand | None = None
    timelimit_ms: int | None = None


@dataclass(frozen=True)
class LoadedCases:
    """Cases of one kind for one problem."""

    kind: Literal["batch", "interactive"]
    cases: tuple[BatchCase | InteractiveCase, ...]

    def __len__(self) -> int:
        return len(self.cases)

    def __iter__(self) -> Iterator[BatchCase | InteractiveCase]:
        return iter(self.cases)

    def names(self) -> list[str]:
        return [c.name for c in self.cases]

    def tester_builds(self) -> frozenset[BuildCommand]:
        if self.kind != "interactive":
            return frozenset()
        return frozenset(c.tester_build for c in self.cases if isinstance(c, InteractiveCase) and c.tester_build)


# ---------------------------------------------------------------------------
# Suite documents
# ---------------------------------------------------------------------------


# Hand-written scalars (`out: 3`, `- true`) are read back as text.
def _scalar_to_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


ArgString = Annotated[str, BeforeValidator(_scalar_to_str)]
Timelimit = Optional[NonNegativeInt]


class _SuiteBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    @property
    def is_simple(self) -> bool:
        return False

    def set_timelimit(self, timelimit_ms: int | None, *, target: str) -> None:
        raise UnsubmittableError(target)

    def append(self, input: str, output: str | None = None) -> None:
        raise SuiteIsNotSimpleError()

    def set_match(self, policy: MatchPolicy) -> None:
        raise SuiteIsNotSimpleError()


class SuiteCase(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    input: ArgString = Field(alias="in")
    output: ArgString | None = Field(default=None, alias="out")

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"in": self.input}
        if self.output is not None:
            doc["out"] = self.output
        return doc


class BatchSuite(_SuiteBase):
    type: Literal["batch"] = "batch"
    timelimit: Timelimit = None
    match: MatchField = EXACT
    cases: list[SuiteCase] = Field(default_factory=list)

    @classmethod
    def new(cls, timelimit: int | None = None) -> BatchSuite:
        return cls(timelimit=timelimit)

    def any(self) -> BatchSuite:
        self.match = ANY
        return self

    def with_cases(self, cases: Iterable[tuple[str, str | None]]) -> BatchSuite:
        for input, output in cases:
            self.append(input, output)
        return self

    @property
    def is_simple(self) -> bool:
        return True

    def set_timelimit(self, timelimit_ms: int | None, *, target: str) -> None:
        self.timelimit = timelimit_ms

    def append(self, input: str, output: str | None = None) -> None:
        self.cases.append(SuiteCase(input=input, output=output))

    def set_match(self, policy: MatchPolicy) -> None:
        self.match = policy

    def describe(self) -> str:
        n = len(self.cases)
        if n == 0:
            return "no test case"
        if n == 1:
            return "1 test case"
        return f"{n} test cases"

    def head_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"type": self.type}
        if self.timelimit is not None:
            doc["timelimit"] = self.timelimit
        doc["match"] = dump_match_policy(self.match)
        return doc

    def to_document(self) -> dict[str, Any]:
        doc = self.head_document()
        doc["cases"] = [c.to_document() for c in self.cases]
        return doc


class InteractiveSuite(_SuiteBase):
    type: Literal["interactive"] = "interactive"
    timelimit: Timelimit = None
    tester: ArgString | None = None
    each_args: list[list[ArgString]] = Field(default_factory=list)

    @classmethod
    def new(cls, timelimit: int | None = None) -> InteractiveSuite:
        return cls(timelimit=timelimit)

    def set_timelimit(self, timelimit_ms: int | None, *, target: str) -> None:
        self.timelimit = timelimit_ms

    def describe(self) -> str:
        return "interactive problem"

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"type": self.type}
        if self.timelimit is not None:
            doc["timelimit"] = self.timelimit
        if self.tester is not None:
            doc["tester"] = self.tester
        doc["each_args"] = [list(args) for args in self.each_args]
        return doc


class UnsubmittableSuite(_SuiteBase):
    type: Literal["unsubmittable"] = "unsubmittable"

    def describe(self) -> str:
        return "unsubmittable problem"

    def to_document(self) -> dict[str, Any]:
        return {"type": self.type}


Suite = Union[BatchSuite, InteractiveSuite, UnsubmittableSuite]

_SUITE_ADAPTER: TypeAdapter[Suite] = TypeAdapter(
    Annotated[Union[BatchSuite, InteractiveSuite, UnsubmittableSuite], Field(discriminator="type")]
)


def parse_suite_document(data: Any) -> Suite:
    """Validate a decoded document (dict) into a suite.

    `type: simple` is the legacy spelling of `batch`; a document without `type`
    but with `cases` is read as batch.
    """
    if not isinstance(data, dict):
        raise ValueError(f"top-level suite must be a mapping, got {type(data).__name__}")
    doc = dict(data)
    kind = doc.get("type")
    if kind == "simple" or (kind is None and "cases" in doc):
        doc["type"] = "batch"
    return _SUITE_ADAPTER.validate_python(doc)
