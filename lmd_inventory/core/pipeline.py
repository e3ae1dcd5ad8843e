# lmd_inventory/core/pipeline.py
from __future__ import annotations
from collections import Counter
from pathlib import Path
import logging

from .model import FlowEntry, GroupedResult
from .grouping import prepare_grouping, compute_grouping
from .plotting import save_group_size_plot
from .reports import write_report, write_grouped_report

_LOG = logging.getLogger(__name__)

def run_pipeline(entries: list[FlowEntry], cfg: dict, out_root: Path) -> GroupedResult | None:
    """
    Write the inventory of all entries and, unless grouping is off, the grouped
    report and/or group size plot under out_root/<key>/.
    Returns the GroupedResult (None when grouping is off).
    """
    out_root = Path(out_root)
    out_root.mkdir(parents=True, exist_ok=True)

    rep = (cfg or {}).get("reports") or {}
    fmt = str(rep.get("format", "csv")).lower()
    if fmt not in ("csv", "mat", "both"):
        _LOG.warning("unknown report format '%s', using csv", fmt)
        fmt = "csv"
    mat_var = str(rep.get("mat_variable", "inventory"))

    per_dataset = Counter(e.dataset for e in entries)
    for tag, n in sorted(per_dataset.items()):
        _LOG.info("dataset %s: %d entries", tag, n)

    write_report(entries, out_root / "inventory", "inventory (all datasets)", fmt=fmt, mat_variable=mat_var)

    prep = prepare_grouping(cfg)  # returns None when mode = off
    if prep is None:
        return None

    grouped = compute_grouping(entries, prep)
    tube_txt = ",".join(str(t) for t in prep.tubes) if prep.tubes else "any"
    print(f"[INFO] grouped {len(entries)} entries by {prep.key} (tubes: {tube_txt}, "
          f"{prep.completeness}) → {len(grouped)} group(s)")

    key_dir = out_root / prep.key
    if prep.do_report:
        write_grouped_report(
            grouped,
            prep.key,
            key_dir / "report_grouped",
            f"grouped by {prep.key}",
            fmt=fmt,
            mat_variable=f"{mat_var}_grouped",
        )
    if prep.do_plots:
        save_group_size_plot(grouped, key_dir, f"by {prep.key}")

    return grouped
