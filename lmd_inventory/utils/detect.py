# lmd_inventory/utils/detect.py
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Literal

MatchPolicy = Literal["search", "fullmatch"]
MATCH_POLICIES: tuple[str, ...] = ("search", "fullmatch")

# <digits>-<digits>-<alnum> CLL 9F 0<digit><anything>.LMD
# ASCII classes only, extension is case sensitive, trailing part may hold newlines
LMD_PATTERN = re.compile(r"([0-9]+-[0-9]+)-([A-Za-z0-9]+) CLL 9F 0([0-9]).*\.LMD", re.DOTALL)

@dataclass(frozen=True)
class FilenameMatch:
    label: str
    material: str
    tube_set: int

def _check_policy(policy: str) -> str:
    p = str(policy).lower().strip()
    if p not in MATCH_POLICIES:
        raise ValueError(f"unknown match policy '{policy}' (expected one of {', '.join(MATCH_POLICIES)})")
    return p

def match_filename(name: str, policy: MatchPolicy = "search") -> FilenameMatch | None:
    """
    Parse a bare filename against the LMD naming convention.

    - 'search'    -> a matching substring is enough (legacy crawler behaviour)
    - 'fullmatch' -> the whole filename has to follow the grammar
    Returns None for anything that does not yield all three tokens.
    """
    p = _check_policy(policy)
    m = LMD_PATTERN.fullmatch(name) if p == "fullmatch" else LMD_PATTERN.search(name)
    if m is None:
        return None

    groups = m.groups()
    if len(groups) < 3 or any(g is None or g == "" for g in groups[:3]):
        return None
    label, material, tube = groups[:3]
    if len(tube) != 1 or tube not in "0123456789":
        return None
    return FilenameMatch(label=label, material=material, tube_set=int(tube))
