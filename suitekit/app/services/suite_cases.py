from __future__ import annotations

# Suite -> runnable cases.

from typing import Mapping, Sequence

from ..exceptions import LanguageNotSpecifiedError, NoSuchLanguageError
from ..models import (
    BatchCase,
    BatchSuite,
    BuildCommand,
    InteractiveCase,
    InteractiveSuite,
    JudgingCommand,
    expectation_for,
)
from .templates import Template

POSITIONAL_SLOTS = 9


def batch_cases(suite: BatchSuite, *, filename: str) -> list[BatchCase]:
    return [
        BatchCase(
            name=f"{filename}[{i}]",
            input=case.input,
            expected=expectation_for(suite.match, case.output),
            timelimit_ms=suite.timelimit,
        )
        for i, case in enumerate(suite.cases)
    ]


def tester_variables(args: Sequence[str]) -> dict[str, str]:
    """Variables for one tester invocation.

    `*` is every argument joined by a space, `1`..`9` are positional (empty
    when absent) and arguments past the ninth continue as `10`, `11`, ...
    """
    variables = {"*": " ".join(args)}
    for k in range(1, max(POSITIONAL_SLOTS, len(args)) + 1):
        variables[str(k)] = args[k - 1] if k <= len(args) else ""
    return variables


def interactive_cases(
    suite: InteractiveSuite,
    *,
    tester_builds: Mapping[str, Template[BuildCommand]],
    tester_commands: Mapping[str, Template[JudgingCommand]],
    filename: str,
    problem: str,
) -> list[InteractiveCase]:
    cases: list[InteractiveCase] = []
    for i, args in enumerate(suite.each_args):
        lang = suite.tester
        if lang is None:
            raise LanguageNotSpecifiedError()
        build_template = tester_builds.get(lang)
        build = build_template.expand(problem) if build_template is not None else None
        command_template = tester_commands.get(lang)
        if command_template is None:
            raise NoSuchLanguageError(lang)
        tester = command_template.expand(problem, tester_variables(args))
        cases.append(
            InteractiveCase(
                name=f"{filename}[{i}]",
                tester=tester,
                tester_build=build,
                timelimit_ms=suite.timelimit,
            )
        )
    return cases
