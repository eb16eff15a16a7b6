"""
Core module for the idOS check-in bot.

This package contains the configuration, transport, request-execution and
orchestration components that drive the daily check-in cycle.

Submodules:
    config: Application settings (``BotSettings``) and the frozen ``RunConfig``.
    proxy_manager: ``ProxyDescriptor`` parsing, proxy file loading, round-robin assignment.
    transport: ``resolve_transport`` -- direct, HTTP(S) or SOCKS routes.
    http_client: ``RequestExecutor`` with error classification and backoff.
    orchestrator: ``AccountOrchestrator`` (one cycle) and ``CycleScheduler`` (every 24 h).
    monitoring: Rich end-of-cycle summary table.
    logging_setup: Compressed rotating file + safe console logging, account context.
    utils: Input file helpers (private keys).
"""
