"""Application configuration for the idOS check-in bot.

Central configuration module powered by Pydantic v2.  Settings are loaded
from environment variables (with ``.env`` file support).  The per-run
proxy choice is captured separately in the frozen :class:`RunConfig` so
that the orchestrator never reads global mutable state.

Key exports:
    BotSettings: Root settings model (instantiate once in ``main.py``).
    RunConfig: Immutable "use proxy" decision plus the proxy list.
    BASE_DIR / LOGS_DIR: Canonical project paths.
"""

# pylint: disable=no-member

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.proxy_manager import assign_proxy

# ---------------------------------------------------------------------------
# Base Paths
# ---------------------------------------------------------------------------
BASE_DIR: Path = Path(__file__).parent.parent
"""Project root directory (parent of ``core/``)."""

LOGS_DIR: Path = BASE_DIR / "logs"
"""Directory for log output files."""

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/15.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/105.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Firefox/102.0",
]


class BotSettings(BaseSettings):
    """Root configuration model.

    All fields can be set via environment variables (prefix ``IDOS_``)
    or a ``.env`` file.

    Section overview:
        * **Core** -- log level, input files.
        * **Service** -- base URL, IP echo endpoint, quest constants.
        * **Retry policy** -- attempts, initial backoff, 429 floor,
          multiplier, per-attempt timeout.
        * **Pacing** -- delay between accounts, cycle interval.
        * **Identity headers** -- user-agent pool.
    """

    # Core
    log_level: str = "INFO"
    private_keys_file: str = "pk.txt"
    proxies_file: str = "proxy.txt"

    # Service
    base_url: str = "https://app.idos.network"
    ip_lookup_url: str = "https://api.ipify.org?format=json"
    quest_name: str = "daily_check"
    wallet_type: str = "evm"

    # Retry policy
    max_retries: int = Field(default=5, ge=1, le=20)
    initial_backoff_ms: int = Field(default=5000, ge=0)
    # Fixed backoff applied after a 429 response
    rate_limit_backoff_ms: int = Field(default=30000, ge=0)
    backoff_multiplier: float = Field(default=1.5, ge=1.0)
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    # Pacing
    account_delay_seconds: float = Field(default=5.0, ge=0)
    cycle_interval_hours: float = Field(default=24.0, gt=0)

    # Small fixed pool, one entry picked per request
    user_agents: List[str] = Field(
        default_factory=lambda: list(DEFAULT_USER_AGENTS),
        min_length=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="IDOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cycle_interval_seconds(self) -> float:
        """Delay between two full cycles, in seconds."""
        return self.cycle_interval_hours * 3600

    def endpoint(self, path: str) -> str:
        """Join *path* onto the service base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class RunConfig(BaseModel):
    """Proxy decision taken once at startup.

    Attributes:
        use_proxy: Whether requests are routed through proxies.
        proxies: Ordered proxy descriptors; never mutated after
            construction.
    """

    model_config = ConfigDict(frozen=True)

    use_proxy: bool = False
    proxies: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls, use_proxy: bool, proxies: Optional[Sequence[str]] = None,
    ) -> "RunConfig":
        """Create a run configuration, disabling proxying when empty.

        Args:
            use_proxy: The user's choice.
            proxies: Loaded proxy descriptors.

        Returns:
            A frozen :class:`RunConfig`.
        """
        proxy_list = tuple(proxies or ())
        if use_proxy and not proxy_list:
            logger.warning(
                "No proxies available, proceeding without proxy."
            )
            return cls(use_proxy=False, proxies=())
        if not use_proxy:
            logger.info("Proceeding without proxy.")
        return cls(use_proxy=use_proxy, proxies=proxy_list)

    def proxy_for(self, index: int) -> Optional[str]:
        """Return the proxy assigned to the account at *index*."""
        if not self.use_proxy:
            return None
        return assign_proxy(self.proxies, index)
