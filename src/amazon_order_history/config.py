from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_BASE_URL = "https://www.amazon.in"
DEFAULT_LOGIN_URL = (
    "https://www.amazon.in/ap/signin?openid.pape.max_auth_age=0"
    "&openid.return_to=https%3A%2F%2Fwww.amazon.in%2F%3Fref_%3Dnav_signin"
    "&openid.identity=http%3A%2F%2Fspecs.openid.net%2Fauth%2F2.0%2Fidentifier_select"
    "&openid.assoc_handle=inflex&openid.mode=checkid_setup"
    "&openid.claimed_id=http%3A%2F%2Fspecs.openid.net%2Fauth%2F2.0%2Fidentifier_select"
    "&openid.ns=http%3A%2F%2Fspecs.openid.net%2Fauth%2F2.0"
)


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            return os.getenv(match.group(1), "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _drop_empty(d: dict) -> dict:
    # Unset env vars should fall back to model defaults rather than override them with "".
    return {k: v for k, v in d.items() if v not in ("", None)}


def _default_config_from_env() -> dict:
    """
    Env-only config so most users only need `.env`; YAML is an optional override.
    """
    return {
        "site": _drop_empty(
            {
                "base_url": os.getenv("AMAZON_BASE_URL", ""),
                "login_url": os.getenv("AMAZON_LOGIN_URL", ""),
            }
        ),
        "account": {
            "username": os.getenv("AMAZON_USERNAME", ""),
            "password": os.getenv("AMAZON_PASSWORD", ""),
        },
        "browser": {
            "headless": _env_bool("HEADLESS", default=False),
            "slow_mo_ms": int(os.getenv("SLOW_MO_MS", "0") or 0),
        },
        "output": _drop_empty(
            {
                "json_path": os.getenv("ORDERS_JSON_PATH", ""),
                "debug_dir": os.getenv("DEBUG_DIR", ""),
            }
        ),
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", "data/scraper.log"),
        },
    }


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SiteConfig(_Frozen):
    """
    URLs for the target storefront. Derived URLs default from `base_url` so switching the
    storefront only needs one setting.
    """

    base_url: str = DEFAULT_BASE_URL
    login_url: str = ""
    order_history_url: str = ""
    order_history_year_url: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        base_url = str(out.get("base_url") or DEFAULT_BASE_URL).strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"site.base_url must be a full URL like {DEFAULT_BASE_URL!r} (got {base_url!r})")
        out["base_url"] = base_url

        if not out.get("login_url"):
            out["login_url"] = DEFAULT_LOGIN_URL if base_url == DEFAULT_BASE_URL else f"{base_url}/ap/signin"
        if not out.get("order_history_url"):
            out["order_history_url"] = f"{base_url}/gp/css/order-history"
        if not out.get("order_history_year_url"):
            out["order_history_year_url"] = f"{base_url}/your-orders/orders?timeFilter=year-{{year}}"
        if "{year}" not in out["order_history_year_url"]:
            raise ValueError("site.order_history_year_url must contain a {year} placeholder")
        return out

    def year_url(self, year: int) -> str:
        return self.order_history_year_url.replace("{year}", str(int(year)))


class AccountConfig(_Frozen):
    # Optional; when empty the CLI prompts. Never written anywhere.
    username: str = ""
    password: str = Field(default="", repr=False)


class AuthConfig(_Frozen):
    username_attempts: int = Field(default=3, ge=1)
    password_attempts: int = Field(default=3, ge=1)
    verification_attempts: int = Field(default=3, ge=1)
    # Whole login cycle (fresh navigation to the sign-in page each time).
    login_attempts: int = Field(default=2, ge=1)


class HarvestConfig(_Frozen):
    quota: int = Field(default=10, ge=1)
    max_years: int = Field(default=5, ge=1)
    order_page_poll_rounds: int = Field(default=10, ge=1)
    year_poll_rounds: int = Field(default=4, ge=1)


class TimeoutsConfig(_Frozen):
    """All values are milliseconds."""

    page_settle: int = 1_000
    element_wait: int = 2_000
    password_field: int = 5_000
    sign_in_navigation: int = 45_000
    otp_navigation: int = 15_000
    order_page_check: int = 3_000
    order_page_load: int = 30_000
    year_navigation: int = 5_000
    order_content: int = 8_000
    poll_interval: int = Field(default=500, gt=0)


class BrowserConfig(_Frozen):
    # Headful by default: CAPTCHA / device approval prompts need a human.
    headless: bool = False
    slow_mo_ms: int = 0


class OutputConfig(_Frozen):
    json_path: str = "orders.json"
    debug_dir: str = "data/debug"


class LoggingConfig(_Frozen):
    level: str = "INFO"
    file_path: str = "data/scraper.log"


class AppConfig(_Frozen):
    site: SiteConfig = Field(default_factory=SiteConfig)
    account: AccountConfig = AccountConfig()
    auth: AuthConfig = AuthConfig()
    harvest: HarvestConfig = HarvestConfig()
    timeouts: TimeoutsConfig = TimeoutsConfig()
    browser: BrowserConfig = BrowserConfig()
    output: OutputConfig = OutputConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
