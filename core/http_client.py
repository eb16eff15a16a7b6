"""Resilient request execution for the idOS check-in bot.

:class:`RequestExecutor` issues one logical GET/POST through a
:class:`~core.transport.Transport`, classifies the outcome and applies a
bounded retry-with-backoff policy:

* 4xx (except 429) -- client error, returned at once, never retried.
* 429 -- rate limited, retried; the next backoff is forced to the fixed
  rate-limit value (30 s by default).
* 5xx and network faults -- retried with the current backoff, which is
  then multiplied (1.5x by default).
* 2xx whose JSON body says ``"success": false`` -- logical failure,
  treated like a client error.

Request-level errors never propagate; callers always get a
:class:`RequestOutcome`.
"""

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

import aiohttp

from core.config import BotSettings
from core.transport import DIRECT, Transport

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST")


class OutcomeKind(Enum):
    """Tag of a :class:`RequestOutcome`."""

    SUCCESS = "success"
    SOFT_FAILURE = "soft_failure"
    RETRYABLE_FAILURE = "retryable_failure"


class ErrorType(Enum):
    """Classification of request errors.

    Error Categories:
    - CLIENT_ERROR: 4xx other than 429 (not retried)
    - LOGICAL_FAILURE: 2xx body with ``success: false`` (not retried)
    - RATE_LIMIT: 429 (retried after the fixed rate-limit backoff)
    - SERVER_ERROR: 5xx (retried)
    - TRANSIENT: timeouts, DNS, refused connections (retried)
    """
    CLIENT_ERROR = "client_error"
    LOGICAL_FAILURE = "logical_failure"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    TRANSIENT = "transient"

    @property
    def retryable(self) -> bool:
        return self in (
            ErrorType.RATE_LIMIT,
            ErrorType.SERVER_ERROR,
            ErrorType.TRANSIENT,
        )


@dataclass
class RequestOutcome:
    """Result of one logical call.

    Attributes:
        kind: Success, soft failure or retryable failure.
        payload: Decoded response body on success.
        message: Human-readable error description on failure.
        status: HTTP status code, if a response was received.
        error_type: Classification of the failure.
        error_code: Machine-readable error code from the body, if any.
        attempts: Number of network attempts made.
    """

    kind: OutcomeKind
    payload: Any = None
    message: Optional[str] = None
    status: Optional[int] = None
    error_type: Optional[ErrorType] = None
    error_code: Optional[str] = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


BASE_HEADERS: Dict[str, str] = {
    "accept": "*/*",
    "accept-encoding": "gzip, deflate, br",
    "accept-language": "en-US,en;q=0.9,id;q=0.8",
    "content-type": "application/json",
    "origin": "https://app.idos.network",
    "priority": "u=1, i",
    "referer": "https://app.idos.network/",
    "sec-ch-ua": (
        '"Chromium";v="134", "Not:A-Brand";v="24", '
        '"Google Chrome";v="134"'
    ),
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-site",
}


def pick_user_agent(rng: random.Random, pool: Sequence[str]) -> str:
    """Pick one user agent uniformly from *pool* using *rng*."""
    return pool[rng.randrange(len(pool))]


def build_headers(
    user_agent: str, token: Optional[str] = None,
) -> Dict[str, str]:
    """Assemble request headers, adding bearer auth when *token* is set."""
    headers = dict(BASE_HEADERS)
    headers["user-agent"] = user_agent
    if token:
        headers["authorization"] = f"Bearer {token}"
    return headers


def classify_status(status: int) -> ErrorType:
    """Map a non-2xx HTTP status to an :class:`ErrorType`."""
    if status == 429:
        return ErrorType.RATE_LIMIT
    if 400 <= status < 500:
        return ErrorType.CLIENT_ERROR
    if 500 <= status < 600:
        return ErrorType.SERVER_ERROR
    return ErrorType.TRANSIENT


def _error_fields(body: Any) -> Dict[str, Optional[str]]:
    if not isinstance(body, dict):
        return {"message": None, "code": None}
    message = body.get("error") or body.get("message")
    code = body.get("code") or body.get("errorCode")
    if isinstance(message, dict):
        code = code or message.get("code")
        message = message.get("message")
    return {
        "message": str(message) if message else None,
        "code": str(code) if code else None,
    }


class RequestExecutor:
    """Issue HTTP calls with classification and bounded retries.

    Args:
        settings: Bot-wide configuration (retry policy, timeout,
            user-agent pool).
        rng: Random source for user-agent selection.
        sleep: Awaitable sleep taking seconds (``asyncio.sleep`` by
            default); injected in tests.
    """

    def __init__(
        self,
        settings: BotSettings,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self.settings = settings
        self.rng = rng or random.Random()
        self.sleep = sleep or asyncio.sleep
        self.timeout = aiohttp.ClientTimeout(
            total=settings.request_timeout_seconds,
        )

    async def execute(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        transport: Optional[Transport] = None,
        token: Optional[str] = None,
        max_retries: Optional[int] = None,
        initial_backoff_ms: Optional[int] = None,
        context: Optional[str] = None,
    ) -> RequestOutcome:
        """Perform one logical request with retries.

        Args:
            method: ``GET`` or ``POST``.
            url: Absolute URL.
            payload: JSON body for POST requests.
            transport: Network route; ``None`` means direct.
            token: Bearer token, if the endpoint is authenticated.
            max_retries: Maximum number of attempts (settings default).
            initial_backoff_ms: First retry delay (settings default).
            context: Account label used in log lines.

        Returns:
            The final :class:`RequestOutcome`.

        Raises:
            ValueError: If *method* is not supported or *max_retries*
                is below 1.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Method {method} not supported")

        retries = (
            self.settings.max_retries if max_retries is None else max_retries
        )
        if retries < 1:
            raise ValueError("max_retries must be at least 1")
        backoff_ms = float(
            self.settings.initial_backoff_ms
            if initial_backoff_ms is None else initial_backoff_ms
        )
        transport = transport or DIRECT
        prefix = f"[{context}] " if context else ""

        outcome = RequestOutcome(kind=OutcomeKind.RETRYABLE_FAILURE)
        for attempt in range(1, retries + 1):
            outcome = await self._attempt(
                method, url, payload, transport, token,
            )
            outcome.attempts = attempt

            if outcome.kind is not OutcomeKind.RETRYABLE_FAILURE:
                return outcome

            if outcome.error_type is ErrorType.RATE_LIMIT:
                backoff_ms = float(self.settings.rate_limit_backoff_ms)

            if attempt < retries:
                logger.debug(
                    "%s%s %s failed (%s, status %s), retry %d/%d in %.1fs",
                    prefix, method, url, outcome.message,
                    outcome.status, attempt, retries - 1,
                    backoff_ms / 1000,
                )
                await self.sleep(backoff_ms / 1000)
                backoff_ms *= self.settings.backoff_multiplier

        logger.error(
            "%sRequest failed after %d attempts: %s - Status: %s",
            prefix, retries, outcome.message, outcome.status,
        )
        return outcome

    async def _attempt(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]],
        transport: Transport,
        token: Optional[str],
    ) -> RequestOutcome:
        headers = build_headers(
            pick_user_agent(self.rng, self.settings.user_agents), token,
        )
        kwargs = transport.request_kwargs()
        if payload is not None:
            kwargs["json"] = payload

        try:
            async with transport.open_session(
                self.timeout, headers,
            ) as session:
                async with session.request(
                    method, url, **kwargs,
                ) as response:
                    status = response.status
                    body = await self._read_body(response)
        except asyncio.TimeoutError:
            return RequestOutcome(
                kind=OutcomeKind.RETRYABLE_FAILURE,
                message="Request timed out",
                error_type=ErrorType.TRANSIENT,
            )
        except (aiohttp.ClientError, OSError) as e:
            return RequestOutcome(
                kind=OutcomeKind.RETRYABLE_FAILURE,
                message=str(e) or e.__class__.__name__,
                error_type=ErrorType.TRANSIENT,
            )

        fields = _error_fields(body)
        if 200 <= status < 300:
            if isinstance(body, dict) and body.get("success") is False:
                return RequestOutcome(
                    kind=OutcomeKind.SOFT_FAILURE,
                    payload=body,
                    message=fields["message"] or "Unknown error",
                    status=status,
                    error_type=ErrorType.LOGICAL_FAILURE,
                    error_code=fields["code"],
                )
            return RequestOutcome(
                kind=OutcomeKind.SUCCESS, payload=body, status=status,
            )

        error_type = classify_status(status)
        return RequestOutcome(
            kind=(
                OutcomeKind.RETRYABLE_FAILURE if error_type.retryable
                else OutcomeKind.SOFT_FAILURE
            ),
            payload=body,
            message=fields["message"] or f"HTTP {status}",
            status=status,
            error_type=error_type,
            error_code=fields["code"],
        )

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        # Undecodable bytes become U+FFFD
        text = (await response.read()).decode("utf-8", errors="replace")
        try:
            return json.loads(text)
        except ValueError:
            return text
