from __future__ import annotations

import argparse
import datetime as dt
import sys
from typing import List, Optional

from .api_client import ApiError, HarvestClient
from .commands import Services
from .config import ConfigError, Settings, load_config
from .log import get_logger, setup_logging
from .models import Timings, new_model
from .runtime import Program
from .state import RecentsStore, StateError
from .terminal import TerminalApp

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="harvest-tui", description="Terminal client for Harvest time tracking")
    parser.add_argument("--config", help="Path to config.toml (default: ~/.config/harvest-tui/config.toml)")
    parser.add_argument("--log-level", help="Log level for the log file (DEBUG, INFO, WARNING, ERROR)")
    return parser


def timings_from(settings: Settings) -> Timings:
    return Timings(
        tick_interval=settings.tick_interval_seconds,
        poll_interval=settings.poll_interval_seconds,
        status_timeout=settings.status_timeout_seconds,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Start the terminal client; returns the process exit code."""

    args = build_parser().parse_args(argv)

    try:
        settings = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or settings.log_level, settings.log_file)
    logger.info("Starting harvest-tui with config %s", settings.config_file)

    store = RecentsStore(settings.state_path)
    try:
        recents = store.load()
    except StateError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    client = HarvestClient(
        settings.harvest.account_id,
        settings.harvest.access_token,
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
    )
    try:
        user = client.validate_credentials()
    except ApiError as exc:
        logger.error("Credential validation failed: %s", exc)
        print(f"Authentication failed: {exc}", file=sys.stderr)
        print(f"Please check your Harvest credentials in {settings.config_file}", file=sys.stderr)
        return 1

    print(f"Welcome, {user.full_name}!")

    now = dt.datetime.now()
    model = new_model(now.date(), now, user=user, recents=recents, timings=timings_from(settings))
    program = Program(model, Services(client=client, recents_store=store))
    farewell = TerminalApp(program).run()

    if farewell:
        print(farewell)
    try:
        store.save(program.model.recents)
    except StateError as exc:
        logger.warning("Could not save state on exit: %s", exc)
        print(f"Warning: Could not save state: {exc}", file=sys.stderr)
    return 0


__all__ = ["build_parser", "main", "timings_from"]
