from __future__ import annotations

# In-place edits of a suite file: load -> mutate -> save.
#
# Each call is one unit: the suite is loaded fresh, mutated in memory and
# written back atomically. A failed call leaves the file as it was.

from ..models import MatchPolicy
from .suite_codec import SuiteFilePath, load_suite, save_suite


def modify_timelimit(path: SuiteFilePath, timelimit_ms: int | None, *, name: str | None = None) -> str:
    suite = load_suite(path)
    suite.set_timelimit(timelimit_ms, target=str(path.path))
    return save_suite(suite, path, name=name)


def append(path: SuiteFilePath, input: str, output: str | None = None, *, name: str | None = None) -> str:
    suite = load_suite(path)
    suite.append(input, output)
    return save_suite(suite, path, name=name)


def modify_match(path: SuiteFilePath, policy: MatchPolicy, *, name: str | None = None) -> str:
    suite = load_suite(path)
    suite.set_match(policy)
    return save_suite(suite, path, name=name)
