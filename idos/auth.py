"""Wallet-signature login against the idOS API.

The handshake is strictly sequential::

    START -> CHALLENGE_REQUESTED -> SIGNED -> VERIFIED(token) | FAILED

1. POST ``{publicAddress, publicKey}`` to ``/api/auth/message`` and receive
   a single-use ``{message, nonce}`` challenge.
2. Sign the challenge message locally (EIP-191).
3. POST the signature, message and nonce to ``/api/auth/verify`` and
   receive the bearer ``accessToken``.

Any failure along the way aborts the login for that account only.

The user id needed by later calls lives in the token payload.
:func:`decode_token_user_id` reads it *without* verifying the token
signature: the verify endpoint already vouched for the token, the payload
is only introspected.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

import jwt

from core.config import BotSettings
from core.http_client import RequestExecutor
from core.logging_setup import AccountLogger
from core.transport import Transport
from idos.wallet import Identity

logger = logging.getLogger(__name__)

MESSAGE_PATH = "/api/auth/message"
VERIFY_PATH = "/api/auth/verify"


class AuthState(Enum):
    """Steps of the login handshake."""

    START = "start"
    CHALLENGE_REQUESTED = "challenge_requested"
    SIGNED = "signed"
    VERIFIED = "verified"
    FAILED = "failed"


@dataclass(frozen=True)
class Challenge:
    """Message + nonce issued by the service for one login attempt."""

    message: str
    nonce: str


@dataclass(frozen=True)
class Session:
    """Per-account authenticated state for one cycle."""

    address: str
    token: str
    user_id: Any


@dataclass
class LoginResult:
    """Outcome of :meth:`AuthClient.login`.

    Attributes:
        state: ``VERIFIED`` on success, otherwise ``FAILED``.
        token: Bearer token when verified.
        failed_at: Step that failed, if any.
        error: Human-readable failure reason.
    """

    state: AuthState
    token: Optional[str] = None
    failed_at: Optional[AuthState] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is AuthState.VERIFIED


class AuthClient:
    """Runs the challenge/sign/verify handshake for one account."""

    def __init__(
        self, settings: BotSettings, executor: RequestExecutor,
    ) -> None:
        self.settings = settings
        self.executor = executor

    async def request_challenge(
        self,
        address: str,
        transport: Optional[Transport] = None,
        log: Optional[AccountLogger] = None,
    ) -> Optional[Challenge]:
        """Fetch a login challenge for *address*.

        Returns:
            The :class:`Challenge`, or ``None`` on any failure.
        """
        log = log or AccountLogger(logger, address)
        outcome = await self.executor.execute(
            "POST",
            self.settings.endpoint(MESSAGE_PATH),
            payload={"publicAddress": address, "publicKey": address},
            transport=transport,
            context=log.context,
        )
        if not outcome.ok:
            log.error(
                "Failed to fetch message and nonce: %s", outcome.message,
            )
            return None

        body = outcome.payload if isinstance(outcome.payload, dict) else {}
        message = body.get("message")
        nonce = body.get("nonce")
        if not message or nonce is None:
            log.error("Challenge response is missing message or nonce")
            return None
        return Challenge(message=str(message), nonce=str(nonce))

    async def login(
        self,
        identity: Identity,
        transport: Optional[Transport] = None,
        log: Optional[AccountLogger] = None,
    ) -> LoginResult:
        """Run the full handshake for *identity*.

        Args:
            identity: The account's key and address.
            transport: Network route for both calls.
            log: Account-scoped logger.

        Returns:
            A :class:`LoginResult`; ``result.token`` is set on success.
        """
        log = log or AccountLogger(logger, identity.address)
        address = identity.address

        challenge = await self.request_challenge(address, transport, log)
        if challenge is None:
            return self._failed(
                log, AuthState.CHALLENGE_REQUESTED,
                "Failed to get message and nonce",
            )

        signature = identity.sign_message(challenge.message)

        outcome = await self.executor.execute(
            "POST",
            self.settings.endpoint(VERIFY_PATH),
            payload={
                "publicAddress": address,
                "publicKey": address,
                "signature": signature,
                "message": challenge.message,
                "nonce": challenge.nonce,
                "walletType": self.settings.wallet_type,
            },
            transport=transport,
            context=log.context,
        )
        if not outcome.ok:
            return self._failed(log, AuthState.SIGNED, outcome.message)

        body = outcome.payload if isinstance(outcome.payload, dict) else {}
        token = body.get("accessToken")
        if not token:
            return self._failed(
                log, AuthState.SIGNED, "Verify response has no accessToken",
            )
        return LoginResult(state=AuthState.VERIFIED, token=str(token))

    @staticmethod
    def _failed(
        log: AccountLogger, step: AuthState, error: Optional[str],
    ) -> LoginResult:
        log.error("Failed to perform login: %s", error)
        return LoginResult(
            state=AuthState.FAILED, failed_at=step, error=error,
        )


def decode_token_payload(token: str) -> Optional[dict]:
    """Decode the JSON payload (middle segment) of a JWT-style token.

    The signature is not checked.

    Returns:
        The payload dict, or ``None`` if the token is malformed.
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        logger.error("Failed to decode token payload: %s", e)
        return None


def decode_token_user_id(token: str) -> Optional[Union[str, int]]:
    """Return the ``userId`` claim of *token*, or ``None``."""
    payload = decode_token_payload(token)
    if payload is None:
        return None
    user_id = payload.get("userId")
    if user_id is None:
        logger.error("Failed to extract userId from token: claim missing")
    return user_id
