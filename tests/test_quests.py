import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import retry_failure, soft_failure, success
from core.http_client import RequestExecutor
from idos.quests import (
    IP_UNAVAILABLE,
    IP_UNKNOWN,
    POINTS_UNAVAILABLE,
    CheckInStatus,
    QuestClient,
    classify_check_in,
)


@pytest.fixture
def executor():
    mock = MagicMock(spec=RequestExecutor)
    mock.execute = AsyncMock()
    return mock


@pytest.fixture
def client(settings, executor):
    return QuestClient(settings, executor)


class TestClassifyCheckIn:
    def test_success(self):
        assert classify_check_in(success({})) is CheckInStatus.COMPLETED

    @pytest.mark.parametrize("status", [409, 502])
    def test_already_done_statuses(self, status):
        assert classify_check_in(soft_failure("whatever", status=status)) is CheckInStatus.ALREADY_CHECKED_IN

    def test_already_done_error_code(self):
        outcome = soft_failure("Bad request", status=400, error_code="quest_already_completed")
        assert classify_check_in(outcome) is CheckInStatus.ALREADY_CHECKED_IN

    def test_message_fallback(self):
        outcome = soft_failure("Daily quest already completed today", status=400)
        assert classify_check_in(outcome) is CheckInStatus.ALREADY_CHECKED_IN

    def test_other_failure(self):
        assert classify_check_in(soft_failure("Unauthorized", status=401)) is CheckInStatus.FAILED

    def test_exhausted_retries(self):
        assert classify_check_in(retry_failure(status=503)) is CheckInStatus.FAILED


class TestCheckIn:
    @pytest.mark.asyncio
    async def test_payload_and_auth(self, client, executor):
        executor.execute.return_value = success({"ok": True})

        status = await client.perform_check_in("u-1", "tok")

        assert status is CheckInStatus.COMPLETED
        args, kwargs = executor.execute.call_args
        assert args == ("POST", "https://app.idos.network/api/user-quests/complete")
        assert kwargs["payload"] == {"questName": "daily_check", "userId": "u-1"}
        assert kwargs["token"] == "tok"

    @pytest.mark.asyncio
    async def test_409_logged_as_already_checked_in(self, client, executor, caplog):
        executor.execute.return_value = soft_failure(
            "Daily quest already completed today", status=409,
        )
        with caplog.at_level(logging.WARNING):
            status = await client.perform_check_in("u-1", "tok")

        assert status is CheckInStatus.ALREADY_CHECKED_IN
        assert "Already checked in" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_logged_as_error(self, client, executor, caplog):
        executor.execute.return_value = soft_failure("Forbidden", status=403)
        with caplog.at_level(logging.ERROR):
            status = await client.perform_check_in("u-1", "tok")

        assert status is CheckInStatus.FAILED
        assert "Check-in failed: Forbidden (Status: 403)" in caplog.text


class TestPoints:
    @pytest.mark.asyncio
    async def test_points_returned(self, client, executor):
        executor.execute.return_value = success({"totalPoints": 150})

        assert await client.fetch_user_points("u-1", "tok") == 150
        args, kwargs = executor.execute.call_args
        assert args == ("GET", "https://app.idos.network/api/user/u-1/points")
        assert kwargs["token"] == "tok"

    @pytest.mark.asyncio
    async def test_zero_points_are_not_unavailable(self, client, executor):
        executor.execute.return_value = success({"totalPoints": 0})
        assert await client.fetch_user_points("u-1", "tok") == 0

    @pytest.mark.asyncio
    async def test_failure_returns_sentinel(self, client, executor):
        executor.execute.return_value = retry_failure()
        assert await client.fetch_user_points("u-1", "tok") == POINTS_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_missing_field_returns_sentinel(self, client, executor):
        executor.execute.return_value = success({})
        assert await client.fetch_user_points("u-1", "tok") == POINTS_UNAVAILABLE


class TestPublicIp:
    @pytest.mark.asyncio
    async def test_ip(self, client, executor):
        executor.execute.return_value = success({"ip": "5.6.7.8"})
        assert await client.get_public_ip() == "5.6.7.8"
        args, kwargs = executor.execute.call_args
        assert args == ("GET", "https://api.ipify.org?format=json")
        assert kwargs.get("token") is None

    @pytest.mark.asyncio
    async def test_ip_missing(self, client, executor):
        executor.execute.return_value = success({})
        assert await client.get_public_ip() == IP_UNKNOWN

    @pytest.mark.asyncio
    async def test_ip_failure_is_not_fatal(self, client, executor):
        executor.execute.return_value = retry_failure(message="Connection refused", status=None)
        assert await client.get_public_ip() == IP_UNAVAILABLE
