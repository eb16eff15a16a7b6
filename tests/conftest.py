import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import BotSettings
from core.http_client import ErrorType, OutcomeKind, RequestOutcome

# Well-known development keys (Hardhat accounts #0 and #1)
PK_0 = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDR_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PK_1 = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
ADDR_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture
def settings():
    return BotSettings(
        initial_backoff_ms=5000,
        rate_limit_backoff_ms=30000,
        backoff_multiplier=1.5,
        max_retries=5,
        account_delay_seconds=5,
    )


def make_token(payload, header=None):
    """Build a JWT with unpadded base64url segments and a dummy signature."""
    def seg(obj):
        raw = json.dumps(obj).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    return f"{seg(header or {'alg': 'HS256', 'typ': 'JWT'})}.{seg(payload)}.c2lnbmF0dXJl"


def make_response(status=200, body=None):
    """Fake aiohttp response usable inside ``async with``."""
    resp = MagicMock()
    resp.status = status
    if isinstance(body, bytes):
        raw = body
    elif isinstance(body, str):
        raw = body.encode("utf-8")
    else:
        raw = json.dumps(body).encode("utf-8") if body is not None else b""
    resp.read = AsyncMock(return_value=raw)
    return resp


def success(payload=None, status=200):
    return RequestOutcome(kind=OutcomeKind.SUCCESS, payload=payload, status=status)


def soft_failure(message, status=None, error_type=ErrorType.CLIENT_ERROR, error_code=None):
    return RequestOutcome(
        kind=OutcomeKind.SOFT_FAILURE,
        message=message,
        status=status,
        error_type=error_type,
        error_code=error_code,
    )


def retry_failure(message="HTTP 503", status=503):
    return RequestOutcome(
        kind=OutcomeKind.RETRYABLE_FAILURE,
        message=message,
        status=status,
        error_type=ErrorType.SERVER_ERROR,
        attempts=5,
    )
