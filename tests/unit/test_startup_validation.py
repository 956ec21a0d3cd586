"""Tests for startup connectivity checks."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.main import check_redis_connectivity


@pytest.mark.unit
async def test_check_redis_connectivity_disabled() -> None:
    """Test check is skipped when Redis is not configured."""
    mock_redis = Mock()
    mock_redis.is_available = False
    mock_redis.ping = AsyncMock()

    with patch("src.main.redis_client", mock_redis):
        await check_redis_connectivity()

    mock_redis.ping.assert_not_called()


@pytest.mark.unit
async def test_check_redis_connectivity_success() -> None:
    """Test successful Redis ping."""
    mock_redis = Mock()
    mock_redis.is_available = True
    mock_redis.ping = AsyncMock(return_value=True)

    with patch("src.main.redis_client", mock_redis):
        await check_redis_connectivity()
        mock_redis.ping.assert_called_once()


@pytest.mark.unit
async def test_check_redis_connectivity_failure_does_not_raise() -> None:
    """Test an unreachable Redis only logs; the ledger stays in memory."""
    mock_redis = Mock()
    mock_redis.is_available = True
    mock_redis.ping = AsyncMock(side_effect=ConnectionError("refused"))

    with patch("src.main.redis_client", mock_redis):
        await check_redis_connectivity()
