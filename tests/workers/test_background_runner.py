"""
Test suite for BackgroundTaskRunner.

System role: Verification of fire-and-forget task tracking
"""

import asyncio
import logging

import pytest

from notegraph.workers.background import BackgroundTaskRunner


class TestBackgroundTaskRunner:
    """Test suite for submit() and drain()."""

    @pytest.mark.asyncio
    async def test_drain_should_wait_for_submitted_tasks(self, runner: BackgroundTaskRunner) -> None:
        # Arrange
        finished: list[str] = []

        async def work(label: str) -> None:
            await asyncio.sleep(0.01)
            finished.append(label)

        # Act
        runner.submit(work("a"), name="work-a")
        runner.submit(work("b"), name="work-b")
        pending_before = runner.pending
        await runner.drain()

        # Assert
        assert pending_before == 2
        assert sorted(finished) == ["a", "b"]
        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_drain_should_await_tasks_submitted_while_draining(
        self, runner: BackgroundTaskRunner
    ) -> None:
        # Arrange
        finished: list[str] = []

        async def child() -> None:
            finished.append("child")

        async def parent() -> None:
            runner.submit(child(), name="child")

        # Act
        runner.submit(parent(), name="parent")
        await runner.drain()

        # Assert
        assert finished == ["child"]

    @pytest.mark.asyncio
    async def test_failed_task_should_be_logged_and_released(
        self, runner: BackgroundTaskRunner, caplog: pytest.LogCaptureFixture
    ) -> None:
        # Arrange
        async def broken() -> None:
            raise RuntimeError("vector store offline")

        # Act
        with caplog.at_level(logging.ERROR, logger="notegraph.workers.background"):
            task = runner.submit(broken(), name="embed-create:WORK-1")
            await runner.drain()

        # Assert
        assert task.done()
        assert runner.pending == 0
        record = next(r for r in caplog.records if "Background task failed" in r.getMessage())
        assert record.task_name == "embed-create:WORK-1"
        assert record.error_type == "RuntimeError"

    @pytest.mark.asyncio
    async def test_drain_timeout_should_return_with_tasks_pending(
        self, runner: BackgroundTaskRunner
    ) -> None:
        # Arrange
        release = asyncio.Event()
        task = runner.submit(release.wait(), name="slow")

        # Act
        await runner.drain(timeout=0.01)

        # Assert
        assert runner.pending == 1
        release.set()
        await runner.drain()
        assert task.done()

    @pytest.mark.asyncio
    async def test_cancelled_task_should_be_released(self, runner: BackgroundTaskRunner) -> None:
        # Arrange
        task = runner.submit(asyncio.sleep(10), name="sleepy")

        # Act
        task.cancel()
        await runner.drain()

        # Assert
        assert runner.pending == 0
