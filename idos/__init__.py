"""
idOS service flows for the check-in bot.

Everything here talks to ``app.idos.network`` through the shared
:class:`~core.http_client.RequestExecutor`; request failures arrive as
:class:`~core.http_client.RequestOutcome` values, never as exceptions.

Submodules:
    wallet: ``Identity`` -- private key to checksummed address, EIP-191 signing.
    auth: ``AuthClient`` login handshake, ``Session``, ``decode_token_user_id``.
    quests: daily check-in, points lookup and public IP lookup.
"""

from .wallet import Identity
from .auth import AuthClient, Challenge, Session, decode_token_user_id
from .quests import (
    CheckInStatus,
    POINTS_UNAVAILABLE,
    QuestClient,
)

__all__ = [
    "Identity",
    "AuthClient",
    "Challenge",
    "Session",
    "decode_token_user_id",
    "CheckInStatus",
    "POINTS_UNAVAILABLE",
    "QuestClient",
]
