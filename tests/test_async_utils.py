"""Tests for run_sync."""

import threading

import pytest

from todoist_vault_sync.core.async_utils import run_sync


async def test_returns_result_with_args():
    def add(a, b, scale=1):
        return (a + b) * scale

    assert await run_sync(add, 1, 2, scale=3) == 9


async def test_runs_off_the_event_loop_thread():
    main_thread = threading.get_ident()
    worker_thread = await run_sync(threading.get_ident)
    assert worker_thread != main_thread


async def test_propagates_exceptions():
    def boom():
        raise OSError("disk gone")

    with pytest.raises(OSError, match="disk gone"):
        await run_sync(boom)
