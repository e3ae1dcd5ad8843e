# lmd_inventory/core/reports.py
from __future__ import annotations
from pathlib import Path
from typing import Literal, Sequence
import numpy as np
import pandas as pd
from scipy.io import savemat

from .model import ENTRY_FIELDS, FlowEntry, GroupedResult, resolve_field

ReportFormat = Literal["csv", "mat", "both"]

def entries_to_frame(entries: Sequence[FlowEntry]) -> pd.DataFrame:
    """One row per entry, columns in ENTRY_FIELDS order (kept for empty input)."""
    df = pd.DataFrame([e.as_dict() for e in entries], columns=list(ENTRY_FIELDS))
    return df.astype({"tube_set": "int64"})

def grouped_to_frame(grouped: GroupedResult, key_field: str) -> pd.DataFrame:
    """
    Flatten a GroupedResult in key order.
    Adds 'group_key' (first column), 'key_field' and 'group_size'.
    """
    attr = resolve_field(key_field)
    rows: list[dict] = []
    for key, bucket in grouped.items():
        for e in bucket:
            row = {"group_key": key, "key_field": attr, "group_size": len(bucket)}
            row.update(e.as_dict())
            rows.append(row)
    cols = ["group_key", "key_field", "group_size", *ENTRY_FIELDS]
    return pd.DataFrame(rows, columns=cols)

def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_csv}")

def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    seq2 = [("" if s is None else str(s)) for s in seq]
    arr = np.empty((len(seq2), 1), dtype=object)
    arr[:, 0] = seq2
    return arr

def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str, title: str) -> None:
    """
    Save a MATLAB struct with one field per column.
    Numeric columns become double (Nx1), everything else a cell array (Nx1).
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)

    mat_struct = {}
    for col in df_out.columns:
        if pd.api.types.is_numeric_dtype(df_out[col]):
            mat_struct[col] = df_out[col].to_numpy(dtype=float).reshape(-1, 1)
        else:
            mat_struct[col] = _to_mat_cellstr(df_out[col].astype(str).tolist())

    savemat(out_mat, {varname: mat_struct})
    print(f"[OK] wrote report: {title} → {out_mat}")

def _write(df_out: pd.DataFrame, out_base: Path, title: str, fmt: str, mat_variable: str) -> None:
    if fmt in ("csv", "both"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title)
    if fmt in ("mat", "both"):
        _write_mat(df_out, out_base.with_suffix(".mat"), mat_variable, title)

def write_report(entries: Sequence[FlowEntry],
                 out_base: Path,
                 title: str,
                 fmt: ReportFormat = "csv",
                 mat_variable: str = "inventory") -> None:
    """
    Write the flat inventory.
    - out_base is a *base path without extension* (e.g., .../inventory)
    - fmt: "csv" | "mat" | "both"
    - mat_variable: MATLAB variable name of the struct
    """
    if not entries:
        return
    _write(entries_to_frame(entries), out_base, title, fmt, mat_variable)

def write_grouped_report(grouped: GroupedResult, key_field: str, out_base: Path, title: str,
                         fmt: ReportFormat = "csv", mat_variable: str = "inventory_grouped") -> None:
    if not len(grouped):
        return
    _write(grouped_to_frame(grouped, key_field), out_base, title, fmt, mat_variable)
