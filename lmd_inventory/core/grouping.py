# lmd_inventory/core/grouping.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Literal

from .model import ENTRY_FIELDS, FlowEntry, GroupedResult, resolve_field

Completeness = Literal["exact_count", "exact_coverage"]
COMPLETENESS_POLICIES: tuple[str, ...] = ("exact_count", "exact_coverage")

_LOG = logging.getLogger(__name__)

def _is_complete(bucket: list[FlowEntry], tubes: frozenset[int], policy: str) -> bool:
    if policy == "exact_count":
        # size only: {1,1,2} passes for {1,2,3}
        return len(bucket) == len(tubes)
    # exact_coverage: one entry per required tube
    return sorted(e.tube_set for e in bucket) == sorted(tubes)

def group_by(entries: Iterable[FlowEntry],
             key_field: str,
             tube_nums: Iterable[int] = (),
             completeness: Completeness = "exact_count") -> GroupedResult:
    """
    Bucket entries by the value of key_field.

    With tube_nums given, entries of other tubes are dropped first and afterwards
    every bucket failing the completeness policy is removed:
      - exact_count    : bucket size equals the number of required tubes
      - exact_coverage : exactly one entry per required tube
    Empty tube_nums disables both filters. Keys are str and keep first-seen order.
    """
    attr = resolve_field(key_field)
    if completeness not in COMPLETENESS_POLICIES:
        raise ValueError(f"unknown completeness policy '{completeness}'")
    tubes = frozenset(int(t) for t in tube_nums)

    keys: list[str] = []
    groups: dict[str, list[FlowEntry]] = {}
    for entry in entries:
        if tubes and entry.tube_set not in tubes:
            continue
        key = str(getattr(entry, attr))
        bucket = groups.get(key)
        if bucket is None:
            keys.append(key)
            groups[key] = [entry]
        else:
            bucket.append(entry)

    if tubes:
        dropped = [k for k in keys if not _is_complete(groups[k], tubes, completeness)]
        for k in dropped:
            del groups[k]
        keys = [k for k in keys if k in groups]
        if dropped:
            _LOG.debug("dropped %d incomplete group(s) on %s (%s): %s",
                       len(dropped), attr, completeness, ", ".join(dropped))

    return GroupedResult(keys=keys, groups=groups)

# --- config-driven wrapper helpers ---

@dataclass
class GroupCfg:
    key: str = "material"
    tubes: tuple[int, ...] = ()
    completeness: str = "exact_count"
    mode: str = "report"                # off | report | plot | both
    do_report: bool = True
    do_plots: bool = False

def _parse_tubes(value) -> tuple[int, ...]:
    if value is None:
        return ()
    if isinstance(value, (int, str)):
        value = [value]
    tubes: list[int] = []
    if isinstance(value, (list, tuple, set)):
        for item in value:
            try:
                t = int(item)
            except (TypeError, ValueError):
                continue
            if 0 <= t <= 9 and t not in tubes:
                tubes.append(t)
    return tuple(tubes)

def prepare_grouping(global_cfg: dict) -> GroupCfg | None:
    """
    Read the grouping section from config and return a GroupCfg.
    Returns None when grouping is disabled.
    """
    grp = (global_cfg or {}).get("grouping", {}) or {}

    raw_mode = grp.get("mode", "report")
    if raw_mode is False:
        # YAML reads a bare off as False
        raw_mode = "off"
    mode = str(raw_mode).lower().strip()
    if mode not in ("off", "report", "plot", "both"):
        _LOG.warning("unknown grouping mode '%s', using 'report'", mode)
        mode = "report"
    if mode == "off":
        return None

    key = str(grp.get("key", "material"))
    try:
        key = resolve_field(key)
    except ValueError:
        _LOG.warning("unknown grouping key '%s', using 'material' (fields: %s)", key, ", ".join(ENTRY_FIELDS))
        key = "material"

    completeness = str(grp.get("completeness", "exact_count")).lower().strip()
    if completeness not in COMPLETENESS_POLICIES:
        _LOG.warning("unknown completeness policy '%s', using 'exact_count'", completeness)
        completeness = "exact_count"

    return GroupCfg(
        key=key,
        tubes=_parse_tubes(grp.get("tubes")),
        completeness=completeness,
        mode=mode,
        do_report=(mode in ("report", "both")),
        do_plots=(mode in ("plot", "both")),
    )

def compute_grouping(entries: list[FlowEntry], gcfg: GroupCfg) -> GroupedResult:
    return group_by(entries, gcfg.key, gcfg.tubes, gcfg.completeness)
