from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from bbscan.tuning import DEFAULT_TUNING, Tuning, load_tuning, resolve_tuning, tuning_from_mapping


class TuningTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, text: str) -> Path:
        path = self.tmp / "tuning.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults(self) -> None:
        self.assertIs(load_tuning(None), DEFAULT_TUNING)
        self.assertIs(resolve_tuning(None), DEFAULT_TUNING)
        self.assertEqual(DEFAULT_TUNING.alignment_k, 120.0)
        self.assertEqual(DEFAULT_TUNING.median_buffer_size, 25)

    def test_yaml_overrides(self) -> None:
        path = self._write(
            "tuning:\n"
            "  alignment_k: 200\n"
            "  median_buffer_size: '30'\n"
            "  ready_hold_ms: 1500\n"
        )
        t = load_tuning(path)
        self.assertEqual(t.alignment_k, 200.0)
        self.assertIsInstance(t.median_buffer_size, int)
        self.assertEqual(t.median_buffer_size, 30)
        self.assertEqual(t.ready_hold_ms, 1500.0)
        self.assertEqual(t.ema_alpha, DEFAULT_TUNING.ema_alpha)

    def test_top_level_mapping(self) -> None:
        t = load_tuning(self._write("consistency_pass_score: 75\n"))
        self.assertEqual(t.consistency_pass_score, 75.0)

    def test_bad_entries_are_skipped(self) -> None:
        with self.assertLogs("bbscan.tuning", level="WARNING") as logs:
            t = load_tuning(self._write("bogus: 1\nema_alpha: fast\ncheckin_warn_days: 5\n"))
        self.assertEqual(t.ema_alpha, DEFAULT_TUNING.ema_alpha)
        self.assertEqual(t.checkin_warn_days, 5.0)
        self.assertEqual(len(logs.records), 2)

    def test_unusable_files_fall_back(self) -> None:
        with self.assertLogs("bbscan.tuning", level="WARNING"):
            self.assertIs(load_tuning(self.tmp / "missing.yaml"), DEFAULT_TUNING)
        with self.assertLogs("bbscan.tuning", level="WARNING"):
            self.assertIs(load_tuning(self._write("alignment_k: [1, 2\n")), DEFAULT_TUNING)
        self.assertIs(load_tuning(self._write("- 1\n- 2\n")), DEFAULT_TUNING)
        self.assertIs(load_tuning(self._write("")), DEFAULT_TUNING)

    def test_mapping_layers_on_base(self) -> None:
        base = Tuning(alignment_k=90.0)
        t = tuning_from_mapping({"ema_alpha": 0.5}, base)
        self.assertEqual(t.alignment_k, 90.0)
        self.assertEqual(t.ema_alpha, 0.5)
        self.assertIs(tuning_from_mapping({}, base), base)
        self.assertEqual(t.to_dict()["ema_alpha"], 0.5)


if __name__ == "__main__":
    unittest.main()
