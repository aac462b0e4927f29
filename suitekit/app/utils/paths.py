#
# Path display helpers.
#
from __future__ import annotations

import os
from typing import Sequence


def _common_suffix_len(items: Sequence[str]) -> int:
    shortest = min(len(s) for s in items)
    n = 0
    while n < shortest and len({s[len(s) - 1 - n] for s in items}) == 1:
        n += 1
    return n


def compress_paths(paths: Sequence[str]) -> str:
    """Fold a list of paths into one brace expression.

    The longest common prefix and the longest common suffix of all paths are
    kept once; the remaining middles go inside braces.

    >>> compress_paths(["a/1.yaml", "a/2.yaml"])
    'a/{1,2}.yaml'
    >>> compress_paths(["a/1.yaml"])
    'a/1.yaml'
    """
    items = [str(p) for p in paths]
    if not items:
        return ""

    prefix = os.path.commonprefix(items)
    rests = [s[len(prefix) :] for s in items]
    n_suffix = _common_suffix_len(rests)
    suffix = rests[0][len(rests[0]) - n_suffix :] if n_suffix else ""
    middles = [s[: len(s) - n_suffix] for s in rests]
    middles = [m for m in middles if m]

    if not middles:
        return prefix + suffix
    return prefix + "{" + ",".join(middles) + "}" + suffix
