"""Path/command templates.

Suite loading only needs `expand(problem, variables) -> T`; the engine never
looks inside a template. The implementations here cover the common syntax:

- `{}` is replaced by the problem id, taken literally (`$` included)
- `$name` / `${name}` is replaced by a variable (`$1`, `$*`, `$10` included)
- `$$` is a literal `$`
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, TypeVar

from ..exceptions import ExpandTemplateError
from ..models import BuildCommand, JudgingCommand

T_co = TypeVar("T_co", covariant=True)


class Template(Protocol[T_co]):
    def expand(self, problem: str, variables: Mapping[str, str] | None = None) -> T_co: ...


class _Pattern(string.Template):
    idpattern = r"(?a:\*|[_a-z0-9]+)"


def expand_string(template: str, problem: str, variables: Mapping[str, str] | None = None) -> str:
    text = template.replace("{}", problem.replace("$", "$$"))
    try:
        return _Pattern(text).substitute(dict(variables or {}))
    except KeyError as exc:
        raise ExpandTemplateError(template, str(exc.args[0])) from exc
    except ValueError as exc:
        raise ExpandTemplateError(template, "$") from exc


def _resolve(base_dir: Path, raw: str) -> Path:
    p = Path(raw).expanduser()
    return p if p.is_absolute() else base_dir / p


@dataclass(frozen=True)
class PathTemplate:
    template: str
    base_dir: Path

    def expand(self, problem: str, variables: Mapping[str, str] | None = None) -> Path:
        return _resolve(self.base_dir, expand_string(self.template, problem, variables))


@dataclass(frozen=True)
class CommandTemplate:
    command: str
    working_dir: str
    base_dir: Path

    def expand(self, problem: str, variables: Mapping[str, str] | None = None) -> JudgingCommand:
        return JudgingCommand(
            command=expand_string(self.command, problem, variables),
            working_dir=_resolve(self.base_dir, expand_string(self.working_dir, problem, variables)),
        )


@dataclass(frozen=True)
class BuildTemplate:
    command: str
    working_dir: str
    base_dir: Path

    def expand(self, problem: str, variables: Mapping[str, str] | None = None) -> BuildCommand:
        return BuildCommand(
            command=expand_string(self.command, problem, variables),
            working_dir=_resolve(self.base_dir, expand_string(self.working_dir, problem, variables)),
        )
