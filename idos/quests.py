"""Daily check-in, points lookup and public IP lookup.

Check-in outcomes are mapped to :class:`CheckInStatus`.  "Already checked
in" is recognised first from explicit signals (HTTP 409/502, or a known
service error code) and only then from the error text.
"""

import logging
from enum import Enum
from typing import Any, Optional

from core.config import BotSettings
from core.http_client import RequestExecutor, RequestOutcome
from core.logging_setup import AccountLogger
from core.transport import Transport

logger = logging.getLogger(__name__)

CHECKIN_PATH = "/api/user-quests/complete"
POINTS_PATH = "/api/user/{user_id}/points"

POINTS_UNAVAILABLE = "N/A"
IP_UNKNOWN = "Unknown"
IP_UNAVAILABLE = "Error retrieving IP"

ALREADY_DONE_STATUSES = frozenset({409, 502})
ALREADY_DONE_CODES = frozenset({
    "QUEST_ALREADY_COMPLETED",
    "ALREADY_COMPLETED",
    "DAILY_QUEST_ALREADY_COMPLETED",
})
ALREADY_DONE_MARKER = "already completed"


class CheckInStatus(Enum):
    """Result of a daily check-in attempt."""

    COMPLETED = "completed"
    ALREADY_CHECKED_IN = "already_checked_in"
    FAILED = "failed"


def classify_check_in(outcome: RequestOutcome) -> CheckInStatus:
    """Map an executor outcome to a :class:`CheckInStatus`."""
    if outcome.ok:
        return CheckInStatus.COMPLETED
    if outcome.status in ALREADY_DONE_STATUSES:
        return CheckInStatus.ALREADY_CHECKED_IN
    if outcome.error_code and outcome.error_code.upper() in ALREADY_DONE_CODES:
        return CheckInStatus.ALREADY_CHECKED_IN
    if ALREADY_DONE_MARKER in (outcome.message or "").lower():
        return CheckInStatus.ALREADY_CHECKED_IN
    return CheckInStatus.FAILED


class QuestClient:
    """Authenticated quest and stats calls for one account at a time."""

    def __init__(
        self, settings: BotSettings, executor: RequestExecutor,
    ) -> None:
        self.settings = settings
        self.executor = executor

    async def perform_check_in(
        self,
        user_id: Any,
        token: str,
        transport: Optional[Transport] = None,
        log: Optional[AccountLogger] = None,
    ) -> CheckInStatus:
        """Complete the daily quest for *user_id*."""
        log = log or AccountLogger(logger, str(user_id))
        outcome = await self.executor.execute(
            "POST",
            self.settings.endpoint(CHECKIN_PATH),
            payload={
                "questName": self.settings.quest_name,
                "userId": user_id,
            },
            transport=transport,
            token=token,
            context=log.context,
        )
        status = classify_check_in(outcome)
        if status is CheckInStatus.ALREADY_CHECKED_IN:
            log.warning(
                "Already checked in: %s (Status: %s)",
                outcome.message, outcome.status or "N/A",
            )
        elif status is CheckInStatus.FAILED:
            log.error(
                "Check-in failed: %s (Status: %s)",
                outcome.message or "Unknown error",
                outcome.status or "N/A",
            )
        return status

    async def fetch_user_points(
        self,
        user_id: Any,
        token: str,
        transport: Optional[Transport] = None,
        log: Optional[AccountLogger] = None,
    ) -> Any:
        """Return the account's ``totalPoints`` or :data:`POINTS_UNAVAILABLE`."""
        log = log or AccountLogger(logger, str(user_id))
        outcome = await self.executor.execute(
            "GET",
            self.settings.endpoint(POINTS_PATH.format(user_id=user_id)),
            transport=transport,
            token=token,
            context=log.context,
        )
        if not outcome.ok:
            log.error("Failed to fetch user points: %s", outcome.message)
            return POINTS_UNAVAILABLE

        body = outcome.payload if isinstance(outcome.payload, dict) else {}
        points = body.get("totalPoints")
        if points is None:
            return POINTS_UNAVAILABLE
        return points

    async def get_public_ip(
        self,
        transport: Optional[Transport] = None,
        log: Optional[AccountLogger] = None,
    ) -> str:
        """Best-effort lookup of the egress IP seen by the service."""
        context = log.context if log else None
        outcome = await self.executor.execute(
            "GET",
            self.settings.ip_lookup_url,
            transport=transport,
            context=context,
        )
        if not outcome.ok:
            (log or logger).error(
                "Failed to get IP: %s", outcome.message,
            )
            return IP_UNAVAILABLE
        body = outcome.payload if isinstance(outcome.payload, dict) else {}
        return str(body.get("ip") or IP_UNKNOWN)
