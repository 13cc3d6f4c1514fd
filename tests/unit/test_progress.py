from __future__ import annotations
from pathlib import Path
from unittest.mock import MagicMock, patch

from sales_import.services.progress import ProgressTracker


def test_tracker_is_disabled_without_tty():
    with patch("sales_import.services.progress.is_tty_enabled", return_value=False):
        with ProgressTracker(2) as tracker:
            tracker.start_file(Path("a.csv"))
            tracker.finish_file(3, 1, 0)
            assert tracker.pbar is None
            assert tracker.current_file == 1


def test_tracker_drives_tqdm_on_tty():
    bar = MagicMock()
    with patch("sales_import.services.progress.is_tty_enabled", return_value=True), patch(
        "sales_import.services.progress.tqdm", return_value=bar
    ) as tqdm_cls:
        tracker = ProgressTracker(1, description="Importing")
        tracker.start_file(Path("pos.xlsx"))
        bar.set_description.assert_called_with("Importing (pos.xlsx)")
        tracker.finish_file(records=5, warnings=1, errors=2)
        bar.update.assert_called_once_with(1)
        bar.set_postfix.assert_called_once_with(records=5, warnings=1, errors=2)
        tracker.close()
        bar.close.assert_called_once()
        assert tqdm_cls.call_args.kwargs["total"] == 1
