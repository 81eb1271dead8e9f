from __future__ import annotations

import argparse
import logging
import os
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .client import OrderHistoryClient
from .config import AppConfig, load_config
from .credentials import PromptCredentialProvider
from .errors import CredentialsUnavailableError, LoginFailedError, StartupError
from .logging_config import configure_logging
from .sink import JsonResultSink
from .util.debug_bundle import create_debug_bundle


logger = logging.getLogger("amazon_order_history")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="amazon-order-history",
        description="Sign in to Amazon.in in a real browser and export your most recent orders as JSON.",
    )
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )
    p.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml, optional)")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--headless", dest="headless", action="store_true", default=None, help="Run browser headless")
    mode.add_argument(
        "--headful",
        dest="headless",
        action="store_false",
        help="Run browser headful (default; needed when the site shows a CAPTCHA)",
    )
    p.add_argument("--output", default=None, help="Where to write the JSON (default: output.json_path from config)")
    return p


def _write_debug_bundle(cfg: AppConfig, label: str, error: BaseException) -> None:
    try:
        bundle = create_debug_bundle(
            debug_dir=cfg.output.debug_dir,
            log_file=cfg.logging.file_path,
            out_dir=str(Path(cfg.output.debug_dir).parent),
            label=label,
            state=getattr(error, "state", None),
            reason=str(error),
        )
        logger.error("Wrote debug bundle: %s", bundle)
    except OSError:
        logger.debug("Failed to create debug bundle.", exc_info=True)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    cfg = load_config(args.config)
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path)

    credentials = PromptCredentialProvider(username=cfg.account.username, password=cfg.account.password)
    client = OrderHistoryClient(cfg, credentials)
    sink = JsonResultSink(args.output or cfg.output.json_path)

    t0 = time.time()
    logger.info("Starting order export (site=%s)", cfg.site.base_url)
    try:
        records = client.run(headless=args.headless)
        sink.emit(records)
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        return 130
    except (LoginFailedError, StartupError, CredentialsUnavailableError) as e:
        logger.error("Login failed: %s", e)
        _write_debug_bundle(cfg, "login", e)
        return 1
    except Exception as e:
        logger.exception("Run failed (seconds=%.2f)", time.time() - t0)
        _write_debug_bundle(cfg, "run", e)
        return 1

    logger.info("Run finished (orders=%d seconds=%.2f)", len(records), time.time() - t0)
    return 0
