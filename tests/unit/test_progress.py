from __future__ import annotations

from unittest.mock import Mock, patch

from schedule_import.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        with patch('schedule_import.services.progress.is_tty_enabled', return_value=True), \
             patch('schedule_import.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Importing classes")

            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Importing classes",
                unit="class",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('schedule_import.services.progress.is_tty_enabled', return_value=False), \
             patch('schedule_import.services.progress.tqdm') as mock_tqdm:
            tracker = ProgressTracker(5)

            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_explicitly_disabled_or_empty(self):
        with patch('schedule_import.services.progress.is_tty_enabled', return_value=True), \
             patch('schedule_import.services.progress.tqdm') as mock_tqdm:
            assert ProgressTracker(5, enabled=False).pbar is None
            assert ProgressTracker(0).pbar is None
            mock_tqdm.assert_not_called()

    def test_advance_counts_and_updates_bar(self):
        mock_pbar = Mock()
        with patch('schedule_import.services.progress.is_tty_enabled', return_value=True), \
             patch('schedule_import.services.progress.tqdm', return_value=mock_pbar):
            tracker = ProgressTracker(3)
            tracker.advance()
            tracker.advance(ok=False)

        assert (tracker.imported, tracker.errored) == (1, 1)
        assert mock_pbar.update.call_count == 2
        mock_pbar.set_postfix.assert_called_with(ok=1, err=1)

    def test_advance_without_bar_still_counts(self):
        with patch('schedule_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(2)
            tracker.advance()
            tracker.advance()
        assert tracker.imported == 2

    def test_context_manager_closes_once(self):
        mock_pbar = Mock()
        with patch('schedule_import.services.progress.is_tty_enabled', return_value=True), \
             patch('schedule_import.services.progress.tqdm', return_value=mock_pbar):
            with ProgressTracker(1) as tracker:
                tracker.advance()
            tracker.close()

        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
