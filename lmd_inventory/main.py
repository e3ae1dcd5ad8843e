# lmd_inventory/main.py
from __future__ import annotations
from pathlib import Path
import logging
import sys
import yaml

from .core.pipeline import run_pipeline
from .core.scanner import prepare_scan, scan_datasets

def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def main(cfg_path: Path | None = None):
    # ---------- config ----------
    here = Path(__file__).resolve().parent
    cfg = load_config(Path(cfg_path) if cfg_path else here / "config.yaml")

    out_root = Path((cfg.get("output") or {}).get("root", "out")).resolve()
    verbose = bool((cfg.get("logging") or {}).get("verbose", True))
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    scan_cfg = prepare_scan(cfg)
    if not scan_cfg.datasets:
        print("[INFO] No datasets configured under input.datasets; nothing to do.")
        sys.exit(0)
    if verbose:
        for root, tag in scan_cfg.datasets:
            print(f"[cfg] dataset {tag}: {root}")
        print(f"[cfg] match_policy={scan_cfg.match_policy}")
        print(f"[cfg] output={out_root}")

    # ---------- scan ----------
    sources = []
    for root, tag in scan_cfg.datasets:
        if not Path(root).is_dir():
            # the scanner itself treats this as "nothing found"
            print(f"[WARN] dataset {tag}: root is not a directory: {root}")
            continue
        sources.append((root, tag))

    entries, counts = scan_datasets(sources, scan_cfg.match_policy)
    if verbose:
        for tag, count in counts:
            groups = len({e.group for e in entries if e.dataset == tag})
            print(f"[scan] {tag}: {count} file(s) in {groups} group dir(s)")

    if not entries:
        print("[INFO] No LMD files found in any dataset.")
        sys.exit(0)

    # ---------- report ----------
    grouped = run_pipeline(entries, cfg, out_root)
    if verbose:
        n_groups = len(grouped) if grouped is not None else 0
        print(f"[summary] {len(entries)} entries, {n_groups} group(s) kept")

if __name__ == "__main__":
    main(Path(sys.argv[1]) if len(sys.argv) > 1 else None)
