"""Tests for the single-flight run guard."""

import threading

import pytest

from catalog_scraper.worker.run_guard import RunState, SingleFlightGuard


class TestSingleFlightGuard:
    """Test acquire/release semantics."""

    def setup_method(self):
        self.guard = SingleFlightGuard()

    def test_starts_idle(self):
        assert self.guard.state is RunState.IDLE
        assert self.guard.is_running is False

    def test_second_acquire_rejected(self):
        assert self.guard.try_acquire() is True
        assert self.guard.is_running is True
        assert self.guard.try_acquire() is False

    def test_release_allows_next_run(self):
        assert self.guard.try_acquire() is True
        self.guard.release()
        assert self.guard.state is RunState.IDLE
        assert self.guard.try_acquire() is True

    def test_release_when_idle_is_harmless(self):
        self.guard.release()
        assert self.guard.state is RunState.IDLE

    def test_concurrent_acquire_only_one_wins(self):
        """Many threads racing for the guard: exactly one gets it."""
        barrier = threading.Barrier(16)
        results = []
        results_lock = threading.Lock()

        def contend():
            barrier.wait()
            acquired = self.guard.try_acquire()
            with results_lock:
                results.append(acquired)

        threads = [threading.Thread(target=contend) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert results.count(False) == 15


class TestHeld:
    """Test the held() context manager."""

    def setup_method(self):
        self.guard = SingleFlightGuard()

    def test_held_releases_after_block(self):
        with self.guard.held() as acquired:
            assert acquired is True
            assert self.guard.is_running is True
        assert self.guard.is_running is False

    def test_held_releases_on_exception(self):
        with pytest.raises(RuntimeError):
            with self.guard.held() as acquired:
                assert acquired is True
                raise RuntimeError("run blew up")
        assert self.guard.state is RunState.IDLE

    def test_busy_held_does_not_release_owner(self):
        """A rejected caller must not free the guard held by someone else."""
        assert self.guard.try_acquire() is True
        with self.guard.held() as acquired:
            assert acquired is False
        assert self.guard.is_running is True
