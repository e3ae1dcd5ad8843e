# lmd_inventory/core/scanner.py
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .model import FlowEntry
from ..utils.detect import MATCH_POLICIES, MatchPolicy, match_filename

_LOG = logging.getLogger(__name__)

def scan_directory(root: str | Path, dataset: str,
                   policy: MatchPolicy = "search") -> tuple[list[FlowEntry], int]:
    """
    Crawl <root>/<group>/<file> and parse every matching filename into a FlowEntry.

    - dot entries at the top level are ignored
    - a root or group that cannot be opened contributes nothing
    - order follows the directory listing of the OS
    Returns (entries, count) with count == len(entries).
    """
    root_s = str(root)
    entries: list[FlowEntry] = []

    try:
        with os.scandir(root_s) as top:
            group_names = [e.name for e in top if not e.name.startswith(".")]
    except OSError as e:
        _LOG.debug("cannot open root %s: %s", root_s, e)
        return entries, 0

    for group in group_names:
        gpath = f"{root_s}/{group}"
        try:
            with os.scandir(gpath) as gdir:
                for item in gdir:
                    m = match_filename(item.name, policy)
                    if m is None:
                        continue
                    entries.append(FlowEntry(
                        fullpath=f"{gpath}/{item.name}",
                        group=group,
                        label=m.label,
                        material=m.material,
                        tube_set=m.tube_set,
                        dataset=dataset,
                    ))
        except OSError as e:
            # plain files at the top level end up here as well
            _LOG.debug("skipping %s: %s", gpath, e)
            continue

    _LOG.info("scanned %s [%s]: %d entries in %d group dir(s)", root_s, dataset, len(entries), len(group_names))
    return entries, len(entries)

# --- several batches ---

@dataclass
class ScanCfg:
    datasets: list[tuple[str, str]] = field(default_factory=list)   # (root, tag)
    match_policy: str = "search"

def scan_datasets(sources: Iterable[tuple[str | Path, str]],
                  policy: MatchPolicy = "search") -> tuple[list[FlowEntry], list[tuple[str, int]]]:
    """
    Scan several (root, tag) pairs in order and concatenate the results.
    Returns (entries, [(tag, count), ...]) with one count per batch.
    """
    merged: list[FlowEntry] = []
    counts: list[tuple[str, int]] = []
    for root, tag in sources:
        found, count = scan_directory(root, tag, policy)
        merged.extend(found)
        counts.append((tag, count))
    return merged, counts

def prepare_scan(global_cfg: dict) -> ScanCfg:
    """
    Read the input section of the config.
    Accepts datasets as a list of {path, tag} mappings or [path, tag] pairs;
    a dataset without tag is tagged with its folder name.
    """
    inp = (global_cfg or {}).get("input", {}) or {}

    policy = str(inp.get("match_policy", "search")).lower().strip()
    if policy not in MATCH_POLICIES:
        _LOG.warning("unknown match_policy '%s', using 'search'", policy)
        policy = "search"

    datasets: list[tuple[str, str]] = []
    raw = inp.get("datasets") or []
    if isinstance(raw, dict):
        raw = [raw]
    for item in raw:
        if isinstance(item, dict):
            path, tag = item.get("path"), item.get("tag")
        elif isinstance(item, (list, tuple)) and item:
            path = item[0]
            tag = item[1] if len(item) > 1 else None
        else:
            path, tag = item, None
        if path is None or str(path).strip() == "":
            continue
        path = str(path)
        if tag is None or str(tag).strip() == "":
            tag = Path(path).name or Path(path).resolve().name or path
        datasets.append((path, str(tag)))

    return ScanCfg(datasets=datasets, match_policy=policy)
