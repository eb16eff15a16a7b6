"""Transport resolution: direct, HTTP(S) proxy or SOCKS proxy.

:func:`resolve_transport` turns an optional proxy descriptor into a
:class:`Transport` that knows how to open an :class:`aiohttp.ClientSession`
and which ``proxy`` / ``proxy_auth`` arguments each request needs.

* ``http://`` / ``https://`` -- aiohttp's native proxy support; inline
  credentials are moved into :class:`aiohttp.BasicAuth`.
* ``socks4://`` / ``socks5://`` -- :class:`aiohttp_socks.ProxyConnector`.

Resolution never touches the network.  Connectors are created only when a
session is opened because aiohttp binds them to the running loop.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import aiohttp
from aiohttp_socks import ProxyConnector

from core.proxy_manager import ProxyDescriptor, mask_proxy

logger = logging.getLogger(__name__)

HTTP_SCHEMES = ("http", "https")


class TransportKind(Enum):
    """How requests leave the machine."""

    DIRECT = "direct"
    HTTP = "http"
    SOCKS = "socks"


@dataclass(frozen=True)
class Transport:
    """A configured network route.

    Attributes:
        kind: Direct, HTTP tunnel or SOCKS tunnel.
        proxy_url: Full proxy URL (with credentials) or ``None``.
        descriptor: Parsed proxy, when one could be parsed.
    """

    kind: TransportKind = TransportKind.DIRECT
    proxy_url: Optional[str] = None
    descriptor: Optional[ProxyDescriptor] = None

    @property
    def label(self) -> str:
        if self.proxy_url is None:
            return "direct"
        return mask_proxy(self.proxy_url)

    def request_kwargs(self) -> Dict[str, Any]:
        """Per-request ``proxy`` / ``proxy_auth`` arguments."""
        if self.kind is not TransportKind.HTTP:
            return {}
        if self.descriptor is None:
            return {"proxy": self.proxy_url}
        kwargs: Dict[str, Any] = {"proxy": self.descriptor.endpoint_url()}
        if self.descriptor.username:
            kwargs["proxy_auth"] = aiohttp.BasicAuth(
                self.descriptor.username, self.descriptor.password,
            )
        return kwargs

    def open_session(
        self,
        timeout: aiohttp.ClientTimeout,
        headers: Optional[Mapping[str, str]] = None,
    ) -> aiohttp.ClientSession:
        """Create a client session routed through this transport.

        The caller owns the session and must close it (use it as an
        async context manager).
        """
        connector = None
        if self.kind is TransportKind.SOCKS:
            connector = ProxyConnector.from_url(self.proxy_url)
        return aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers=dict(headers or {}),
        )


DIRECT = Transport()


def resolve_transport(proxy: Optional[str]) -> Optional[Transport]:
    """Build the transport for an optional proxy descriptor.

    Args:
        proxy: Proxy string or ``None`` for a direct connection.

    Returns:
        A :class:`Transport`, or ``None`` if the descriptor is malformed
        or its scheme unsupported (a warning is logged; callers fall back to a direct connection).
    """
    if proxy is None:
        return DIRECT

    descriptor = ProxyDescriptor.parse(proxy)
    if descriptor is None or not descriptor.is_supported:
        logger.warning("Unsupported proxy: %s", mask_proxy(proxy))
        return None

    kind = (
        TransportKind.HTTP if descriptor.scheme in HTTP_SCHEMES
        else TransportKind.SOCKS
    )
    return Transport(kind=kind, proxy_url=proxy, descriptor=descriptor)
