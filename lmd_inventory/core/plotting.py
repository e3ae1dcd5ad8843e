# lmd_inventory/core/plotting.py
from __future__ import annotations
from pathlib import Path
import matplotlib.pyplot as plt

from .model import GroupedResult

def save_group_size_plot(grouped: GroupedResult, out_dir: Path, title_suffix: str) -> Path | None:
    """
    Bar chart of entries per group (x: group key in first-seen order).
    Returns the written path, None when there is nothing to plot.
    """
    if not len(grouped):
        print(f"[INFO] [{title_suffix}]: no groups; skipping group size plot.")
        return None
    out_dir.mkdir(parents=True, exist_ok=True)

    sizes = grouped.sizes()
    keys = list(sizes.keys())
    counts = [sizes[k] for k in keys]

    width = min(4 + 0.35 * len(keys), 30)
    plt.figure(figsize=(width, 5))
    plt.bar(range(len(keys)), counts)
    plt.xticks(range(len(keys)), keys, rotation=90, fontsize=7)
    plt.ylabel("Files per group")
    plt.title(f"LMD inventory — group sizes ({title_suffix})")
    plt.grid(True, axis="y", alpha=0.3)
    plt.tight_layout()

    out_path = out_dir / "group_sizes.png"
    plt.savefig(out_path, dpi=160)
    plt.close()
    print(f"[OK] [{title_suffix}]: {len(keys)} groups → {out_path}")
    return out_path
