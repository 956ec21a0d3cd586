"""Unit tests for the timer tick scheduler."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from src.core import scheduler


@pytest.mark.unit
def test_start_scheduler_registers_tick_job() -> None:
    """Test the tick job is registered with the configured interval."""
    mock_scheduler = MagicMock()

    with patch.object(scheduler, "scheduler", mock_scheduler):
        scheduler.start_scheduler()

    mock_scheduler.add_job.assert_called_once()
    _, kwargs = mock_scheduler.add_job.call_args
    assert kwargs["id"] == "timer_tick"
    assert isinstance(kwargs["trigger"], IntervalTrigger)
    assert kwargs["max_instances"] == 1
    mock_scheduler.start.assert_called_once()


@pytest.mark.unit
def test_stop_scheduler_when_not_running() -> None:
    """Test stopping an idle scheduler is a no-op."""
    mock_scheduler = MagicMock()
    mock_scheduler.running = False

    with patch.object(scheduler, "scheduler", mock_scheduler):
        scheduler.stop_scheduler()

    mock_scheduler.shutdown.assert_not_called()


@pytest.mark.unit
def test_stop_scheduler_shuts_down() -> None:
    mock_scheduler = MagicMock()
    mock_scheduler.running = True

    with patch.object(scheduler, "scheduler", mock_scheduler):
        scheduler.stop_scheduler()

    mock_scheduler.shutdown.assert_called_once_with(wait=True)


@pytest.mark.unit
async def test_tick_timers_delegates_to_registry() -> None:
    """Test the job ticks every open session."""
    with patch.object(scheduler.session_registry, "tick_all", AsyncMock(return_value=2)) as tick_all:
        await scheduler.tick_timers()

    tick_all.assert_awaited_once()
