"""Account orchestration and cycle scheduling for the idOS check-in bot.

:class:`AccountOrchestrator` runs one *cycle*: every account is processed
in order, one at a time::

    derive address -> public IP (best-effort) -> login -> user id
        -> daily check-in -> points

A failure in one account (login rejected, missing user id, unexpected
exception) is logged with the ``[Account i/N]`` context and the cycle moves
on to the next account.  Accounts are spaced by a fixed delay.

:class:`CycleScheduler` is the outer driver: it reloads the key file,
calls :meth:`AccountOrchestrator.run_cycle`, prints the summary and sleeps
until the next cycle (24 h by default), forever or until :meth:`stop`.

Classes:
    AccountReport: Per-account result of a cycle.
    CycleReport: All account reports of one cycle.
    AccountOrchestrator: Sequential per-account processing.
    CycleScheduler: Repeating driver around ``run_cycle``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from rich.console import Console

from core.config import BotSettings, RunConfig
from core.http_client import RequestExecutor
from core.logging_setup import AccountLogger
from core.monitoring import render_cycle_summary
from core.transport import resolve_transport
from idos.auth import AuthClient, Session, decode_token_user_id
from idos.quests import POINTS_UNAVAILABLE, CheckInStatus, QuestClient
from idos.wallet import Identity

logger = logging.getLogger(__name__)


@dataclass
class AccountReport:
    """What happened to one account during a cycle.

    Attributes:
        index: Zero-based position in the key list.
        address: Derived wallet address (``None`` if the key was bad).
        proxy: Proxy descriptor used, if any.
        ip: Public IP as seen through the transport.
        logged_in: Whether the login handshake succeeded.
        check_in: Check-in result, ``None`` if not attempted.
        points: Total points or :data:`POINTS_UNAVAILABLE`.
        error: Reason the account was aborted, if it was.
    """

    index: int
    address: Optional[str] = None
    proxy: Optional[str] = None
    ip: Optional[str] = None
    logged_in: bool = False
    check_in: Optional[CheckInStatus] = None
    points: Any = POINTS_UNAVAILABLE
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.error is None and self.check_in is not None


@dataclass
class CycleReport:
    """Results of one full pass over the key list."""

    accounts: List[AccountReport] = field(default_factory=list)
    skipped: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for a in self.accounts if a.completed)

    @property
    def failed(self) -> int:
        return len(self.accounts) - self.succeeded


class AccountOrchestrator:
    """Process a list of accounts sequentially with failure isolation.

    Args:
        settings: Bot-wide configuration.
        executor: Shared request executor (created from *settings* when
            omitted).
        sleep: Awaitable sleep used for the inter-account delay.
    """

    def __init__(
        self,
        settings: BotSettings,
        executor: Optional[RequestExecutor] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self.settings = settings
        self.executor = executor or RequestExecutor(settings)
        self.sleep = sleep or asyncio.sleep
        self.auth = AuthClient(settings, self.executor)
        self.quests = QuestClient(settings, self.executor)

    async def run_cycle(
        self, private_keys: Sequence[str], run_config: RunConfig,
    ) -> CycleReport:
        """Process every account once.

        Args:
            private_keys: Ordered private keys, one per account.
            run_config: Frozen proxy decision for this run.

        Returns:
            A :class:`CycleReport` (``skipped`` when there were no keys).
        """
        report = CycleReport()
        if not private_keys:
            logger.error("No private keys found. Skipping this cycle.")
            report.skipped = True
            return report

        total = len(private_keys)
        for i, private_key in enumerate(private_keys):
            proxy = run_config.proxy_for(i)
            log = AccountLogger(logger, f"Account {i + 1}/{total}")
            account = AccountReport(index=i, proxy=proxy)
            try:
                await self.process_account(private_key, proxy, account, log)
            except Exception as e:
                account.error = str(e) or e.__class__.__name__
                log.error("Error processing account: %s", account.error)
            report.accounts.append(account)

            if i < total - 1:
                await self.sleep(self.settings.account_delay_seconds)

        return report

    async def process_account(
        self,
        private_key: str,
        proxy: Optional[str],
        account: AccountReport,
        log: AccountLogger,
    ) -> None:
        """Run the full flow for one account, filling *account*."""
        identity = Identity(private_key)
        account.address = identity.address
        log.info("Starting account processing")

        transport = resolve_transport(proxy)
        if proxy is not None:
            log.info(
                "Using proxy %s",
                transport.label if transport else "none (unsupported)",
            )

        account.ip = await self.quests.get_public_ip(transport, log)
        log.info("IP: %s | Address: %s", account.ip, identity.address)

        log.info("Starting login process...")
        login = await self.auth.login(identity, transport, log)
        if not login.ok:
            account.error = f"Login failed: {login.error}"
            log.error("Login failed")
            return
        account.logged_in = True
        log.info("Login successful")

        user_id = decode_token_user_id(login.token)
        if user_id is None:
            account.error = "Failed to extract userId"
            log.error(account.error)
            return
        session = Session(
            address=identity.address, token=login.token, user_id=user_id,
        )

        log.info("Starting daily check-in process...")
        account.check_in = await self.quests.perform_check_in(
            session.user_id, session.token, transport, log,
        )
        if account.check_in is CheckInStatus.COMPLETED:
            log.info("Check-in successful")

        account.points = await self.quests.fetch_user_points(
            session.user_id, session.token, transport, log,
        )
        log.info("Total Points: %s", account.points)
        log.info("Completed account processing")


class CycleScheduler:
    """Repeat :meth:`AccountOrchestrator.run_cycle` on a fixed interval.

    Args:
        settings: Bot-wide configuration (interval, key file).
        orchestrator: The per-cycle engine.
        run_config: Frozen proxy decision, reused for every cycle.
        key_loader: Returns the current private keys; called at the start
            of every cycle so edits to the key file are picked up.
        console: Rich console for the summary table.
    """

    def __init__(
        self,
        settings: BotSettings,
        orchestrator: AccountOrchestrator,
        run_config: RunConfig,
        key_loader: Callable[[], Sequence[str]],
        console: Optional[Console] = None,
    ) -> None:
        self.settings = settings
        self.orchestrator = orchestrator
        self.run_config = run_config
        self.key_loader = key_loader
        self.console = console or Console()
        self.cycles_run = 0
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Request the loop to exit after the current cycle or wait."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run_once(self) -> CycleReport:
        """Load keys and run a single cycle."""
        keys = list(self.key_loader())
        report = await self.orchestrator.run_cycle(keys, self.run_config)
        self.cycles_run += 1
        if report.accounts:
            render_cycle_summary(report, self.console)
        return report

    async def run_forever(self) -> None:
        """Run cycles until :meth:`stop` is called."""
        interval = self.settings.cycle_interval_seconds
        while not self.stopped:
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Cycle failed: %s", e, exc_info=True)
            if self.stopped:
                break
            logger.info(
                "Cycle completed. Waiting %g Hours...",
                self.settings.cycle_interval_hours,
            )
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
        logger.info("Scheduler stopped after %d cycle(s)", self.cycles_run)
