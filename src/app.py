"""Application entry point for the autoreact dispatcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.signal_formatting import ERROR_SIGNALS, format_signal
from adapters.telegram_transport import TelegramTransport
from client import build_client
from core.guard import install_crash_guard
from core.runtime import Runtime, RuntimeConfig, build_runtime
from core.signals import Signal
from get_session import render_qr

NAME = "AUTOREACT"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(console: bool = True) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # The dashboard owns the terminal, so console logging is off there.
    if console and config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/autoreact.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_transport() -> TelegramTransport:
    return TelegramTransport(build_client(), login_method=settings.LOGIN_METHOD)


def _build_runtime() -> Runtime:
    config = RuntimeConfig(
        rate_limit=settings.RATE_LIMIT,
        emojis=settings.EMOJIS,
        retry=settings.RETRY,
        stabilization=settings.STABILIZATION,
    )
    return build_runtime(_build_transport, config, qr_renderer=render_qr)


class _ConsoleSignalPrinter:
    """Log every signal as one line; QR codes are printed for scanning."""

    def __init__(self, group_aliases: dict[str, str]) -> None:
        self._group_aliases = group_aliases
        self._logger = logging.getLogger("autoreact.signals")

    def __call__(self, channel: Signal, payload: dict[str, Any]) -> None:
        line = format_signal(channel, payload, self._group_aliases)
        if channel in ERROR_SIGNALS:
            self._logger.error("%s", line)
        else:
            self._logger.info("%s", line)
        if channel is Signal.QR_CODE and payload.get("rendered"):
            print(payload["rendered"])


async def _run_headless(runtime: Runtime) -> None:
    logger = logging.getLogger(__name__)
    loop = asyncio.get_running_loop()
    install_crash_guard(loop, runtime.stats, runtime.signals)
    runtime.signals.subscribe(_ConsoleSignalPrinter(settings.GROUP_ALIASES))

    stop_requested = asyncio.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_requested.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers.
            pass

    try:
        result = await runtime.control.start()
        if not result["success"]:
            logger.error("Client failed to start: %s", result.get("error"))
            return
        logger.info("Client connected. Reacting to group messages...")
        await stop_requested.wait()
    finally:
        await runtime.shutdown()
        stats = runtime.control.get_stats()
        logger.info(
            "Shutdown complete: messages=%s, reactions=%s, avg=%.0fms",
            stats["messages_received"],
            stats["reactions_sent"],
            stats["average_reaction_time"] * 1000,
        )


def _run() -> None:
    _print_banner()
    _configure_logging()
    logging.getLogger(__name__).info("Starting autoreact")
    runtime = _build_runtime()
    try:
        asyncio.run(_run_headless(runtime))
    except KeyboardInterrupt:
        pass


def _dashboard() -> None:
    _configure_logging(console=False)
    from frontend.app import DashboardApp

    runtime = _build_runtime()
    app = DashboardApp(runtime, group_aliases=settings.GROUP_ALIASES)
    app.run()


def _login() -> None:
    _print_banner()
    _configure_logging()
    from get_session import main as login_main

    asyncio.run(login_main())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="autoreact")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the headless dispatcher")
    subparsers.add_parser("dashboard", help="Launch the Textual dashboard")
    subparsers.add_parser("login", help="Create or refresh the Telegram session")

    args = parser.parse_args(argv)
    if args.command == "dashboard":
        _dashboard()
        return
    if args.command == "login":
        _login()
        return
    _run()


if __name__ == "__main__":
    main()
