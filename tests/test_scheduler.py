"""Tests for the repeating task scheduler."""

from __future__ import annotations

import threading

import pytest

from mcp_registry.index.scheduler import RepeatingTask, ThreadScheduler


def test_repeating_task_runs_until_cancelled() -> None:
    ran = threading.Event()
    runs = []

    def action() -> None:
        runs.append(1)
        if len(runs) >= 3:
            ran.set()

    task = RepeatingTask(action, 0.0, 0.01).start()
    assert ran.wait(5.0)
    task.cancel()
    task.join(5.0)

    assert task.cancelled
    count = len(runs)
    assert count >= 3


def test_repeating_task_survives_action_errors() -> None:
    calls = []
    done = threading.Event()

    def action() -> None:
        calls.append(1)
        if len(calls) == 2:
            done.set()
        raise RuntimeError("boom")

    task = RepeatingTask(action, 0.0, 0.01).start()
    assert done.wait(5.0)
    task.cancel()
    task.join(5.0)


def test_cancel_before_initial_delay_skips_action() -> None:
    calls = []
    task = RepeatingTask(lambda: calls.append(1), 60.0, 60.0).start()

    task.cancel()
    task.join(5.0)

    assert calls == []


def test_repeating_task_rejects_non_positive_delay() -> None:
    with pytest.raises(ValueError):
        RepeatingTask(lambda: None, 0.0, 0.0)


def test_scheduler_shutdown_is_idempotent_and_blocks_new_tasks() -> None:
    scheduler = ThreadScheduler()
    task = scheduler.schedule_with_fixed_delay(lambda: None, 60.0, 60.0)

    scheduler.shutdown()
    scheduler.shutdown()
    task.join(5.0)

    assert task.cancelled
    assert scheduler.is_shutdown
    with pytest.raises(RuntimeError):
        scheduler.schedule_with_fixed_delay(lambda: None, 1.0, 1.0)
