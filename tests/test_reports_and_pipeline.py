import pandas as pd
import os
from pathlib import Path
import tempfile
import unittest

import yaml
from scipy.io import loadmat

from lmd_inventory.core.grouping import group_by
from lmd_inventory.core.model import ENTRY_FIELDS, FlowEntry
from lmd_inventory.core.pipeline import run_pipeline
from lmd_inventory.core.reports import entries_to_frame, grouped_to_frame, write_report
from lmd_inventory.main import main


def _entry(material, tube, group="G1", dataset="run1"):
    return FlowEntry(
        fullpath=f"/data/{group}/2017-01-{material} CLL 9F 0{tube}.LMD",
        group=group, label="2017-01", material=material, tube_set=tube, dataset=dataset,
    )


def _make_tree(root: Path):
    for group, material, tubes in [("G1", "ABC", (1, 2)), ("G2", "DEF", (1,)), ("G2", "GHI", (1, 2, 3))]:
        for t in tubes:
            p = root / group / f"2017-01-{material} CLL 9F 0{t} sample.LMD"
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(b"")


class ReportTests(unittest.TestCase):
    def test_frames(self):
        entries = [_entry("ABC", 1), _entry("ABC", 2), _entry("DEF", 1)]
        df = entries_to_frame(entries)
        self.assertEqual(list(ENTRY_FIELDS), df.columns.tolist())
        self.assertEqual([1, 2, 1], df["tube_set"].tolist())

        empty = entries_to_frame([])
        self.assertTrue(empty.empty)
        self.assertEqual(list(ENTRY_FIELDS), empty.columns.tolist())

        grouped = group_by(entries, "material", {1, 2})
        gdf = grouped_to_frame(grouped, "material")
        self.assertEqual(["ABC", "ABC"], gdf["group_key"].tolist())
        self.assertEqual([2, 2], gdf["group_size"].tolist())
        self.assertEqual({"material"}, set(gdf["key_field"]))

    def test_write_csv_and_mat(self):
        entries = [_entry("ABC", 1), _entry("DEF", 2)]
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "sub" / "inventory"
            write_report(entries, base, "test", fmt="both", mat_variable="inv")

            df = pd.read_csv(base.with_suffix(".csv"))
            self.assertEqual(["ABC", "DEF"], df["material"].tolist())

            mat = loadmat(base.with_suffix(".mat"))
            self.assertIn("inv", mat)

    def test_empty_inputs_write_nothing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "inventory"
            write_report([], base, "empty", fmt="both")
            self.assertFalse(base.with_suffix(".csv").exists())
            self.assertFalse(base.with_suffix(".mat").exists())


class PipelineTests(unittest.TestCase):
    def test_pipeline_writes_inventory_grouped_report_and_plot(self):
        entries = [_entry("ABC", 1), _entry("ABC", 2), _entry("DEF", 1), _entry("GHI", 1), _entry("GHI", 3)]
        cfg = {
            "grouping": {"mode": "both", "key": "material", "tubes": [1, 2]},
            "reports": {"format": "csv"},
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            out_root = Path(tmpdir) / "out"
            grouped = run_pipeline(entries, cfg, out_root)

            self.assertEqual(["ABC"], grouped.keys)
            self.assertTrue((out_root / "inventory.csv").exists(), "inventory missing")
            self.assertTrue((out_root / "material" / "report_grouped.csv").exists(), "grouped report missing")
            self.assertTrue((out_root / "material" / "group_sizes.png").exists(), "plot missing")

            df_inv = pd.read_csv(out_root / "inventory.csv")
            self.assertEqual(5, len(df_inv))
            df_grp = pd.read_csv(out_root / "material" / "report_grouped.csv")
            self.assertEqual({"ABC"}, set(df_grp["group_key"]))

    def test_pipeline_grouping_off(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            out_root = Path(tmpdir) / "out"
            grouped = run_pipeline([_entry("ABC", 1)], {"grouping": {"mode": "off"}}, out_root)
            self.assertIsNone(grouped)
            self.assertTrue((out_root / "inventory.csv").exists())
            self.assertFalse((out_root / "material").exists())

    def test_pipeline_null_sections_use_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            out_root = Path(tmpdir) / "out"
            grouped = run_pipeline([_entry("ABC", 1)], {"reports": None, "grouping": {"mode": "off"}}, out_root)
            self.assertIsNone(grouped)
            self.assertTrue((out_root / "inventory.csv").exists())

            grouped = run_pipeline([_entry("ABC", 1)], {"reports": None, "grouping": None}, out_root)
            self.assertEqual(["ABC"], grouped.keys)
            self.assertTrue((out_root / "material" / "report_grouped.csv").exists())


class MainTests(unittest.TestCase):
    def _write_cfg(self, tmp: Path, datasets) -> Path:
        cfg = {
            "input": {"datasets": datasets},
            "output": {"root": str(tmp / "out")},
            "grouping": {"mode": "report", "key": "material", "tubes": [1, 2]},
            "reports": {"format": "csv"},
            "logging": {"verbose": False},
        }
        cfg_path = tmp / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
        return cfg_path

    def test_main_end_to_end(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            _make_tree(tmp / "data")
            main(self._write_cfg(tmp, [{"path": str(tmp / "data"), "tag": "run1"}]))

            df_inv = pd.read_csv(tmp / "out" / "inventory.csv")
            self.assertEqual(6, len(df_inv))
            self.assertEqual({"run1"}, set(df_inv["dataset"]))

            df_grp = pd.read_csv(tmp / "out" / "material" / "report_grouped.csv")
            # GHI keeps tubes 1 and 2 after the tube filter, DEF is incomplete
            self.assertEqual({"ABC", "GHI"}, set(df_grp["group_key"]))

    def test_main_null_sections_use_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            _make_tree(tmp / "data")
            cfg_path = tmp / "config.yaml"
            cfg_path.write_text(
                "input:\n"
                "  datasets:\n"
                f"    - path: {tmp / 'data'}\n"
                "      tag: run1\n"
                "output:\n"
                "reports:\n"
                "logging:\n"
                "grouping:\n"
                "  mode: off\n",
                encoding="utf-8",
            )
            cwd = os.getcwd()
            os.chdir(tmp)
            try:
                main(cfg_path)
            finally:
                os.chdir(cwd)
            df_inv = pd.read_csv(tmp / "out" / "inventory.csv")
            self.assertEqual(6, len(df_inv))
            # unquoted YAML off is read as False
            self.assertFalse((tmp / "out" / "material").exists())

    def test_main_exits_when_nothing_found(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            cfg_path = self._write_cfg(tmp, [{"path": str(tmp / "missing"), "tag": "run1"}])
            with self.assertRaises(SystemExit) as ctx:
                main(cfg_path)
            self.assertEqual(0, ctx.exception.code)


if __name__ == "__main__":
    unittest.main()
