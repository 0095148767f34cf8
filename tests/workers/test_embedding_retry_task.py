"""
Test suite for the embedding retry sweep Celery task.

System role: Verification of the periodic retry driver
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notegraph.workers import celery_app
from notegraph.workers.tasks.embedding_retry import _run_sweep, process_embedding_retries


class TestProcessEmbeddingRetries:
    """Test suite for process_embedding_retries task."""

    def test_task_should_return_sweep_summary(self) -> None:
        # Arrange
        summary = {"processed": 2, "succeeded": 1, "rescheduled": 1, "dead_lettered": 0}

        with patch(
            "notegraph.workers.tasks.embedding_retry._run_sweep",
            AsyncMock(return_value=summary),
        ) as run_sweep:
            # Act
            result = process_embedding_retries(limit=5)

        # Assert
        assert result == summary
        run_sweep.assert_awaited_once_with(5)

    def test_beat_should_schedule_sweep(self) -> None:
        schedule = celery_app.conf.beat_schedule["process-embedding-retries"]
        assert schedule["task"] == process_embedding_retries.name


class TestRunSweep:
    """Test suite for _run_sweep()."""

    @pytest.mark.asyncio
    async def test_should_close_container_after_failure(self) -> None:
        # Arrange
        container = MagicMock()
        container.embedding_sync_coordinator.process_retry_queue = AsyncMock(
            side_effect=RuntimeError("database locked")
        )
        container.aclose = AsyncMock()

        with patch("notegraph.dependencies.ServiceContainer", return_value=container):
            # Act
            with pytest.raises(RuntimeError):
                await _run_sweep(10)

        # Assert
        container.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_should_pass_limit_to_coordinator(self) -> None:
        # Arrange
        container = MagicMock()
        container.embedding_sync_coordinator.process_retry_queue = AsyncMock(
            return_value={"processed": 0, "succeeded": 0, "rescheduled": 0, "dead_lettered": 0}
        )
        container.aclose = AsyncMock()

        with patch("notegraph.dependencies.ServiceContainer", return_value=container):
            # Act
            summary = await _run_sweep(3)

        # Assert
        container.embedding_sync_coordinator.process_retry_queue.assert_awaited_once_with(3)
        assert summary["processed"] == 0
