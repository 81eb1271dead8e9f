from __future__ import annotations

from pathlib import Path

import pytest

from amazon_order_history.config import DEFAULT_LOGIN_URL, AppConfig, load_config


_ENV_KEYS = (
    "AMAZON_BASE_URL",
    "AMAZON_LOGIN_URL",
    "AMAZON_USERNAME",
    "AMAZON_PASSWORD",
    "HEADLESS",
    "SLOW_MO_MS",
    "ORDERS_JSON_PATH",
    "DEBUG_DIR",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for k in _ENV_KEYS:
        monkeypatch.delenv(k, raising=False)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults_without_env_or_yaml(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.site.base_url == "https://www.amazon.in"
    assert cfg.site.login_url == DEFAULT_LOGIN_URL
    assert cfg.site.order_history_url == "https://www.amazon.in/gp/css/order-history"
    assert cfg.site.year_url(2024) == "https://www.amazon.in/your-orders/orders?timeFilter=year-2024"
    assert (cfg.auth.username_attempts, cfg.auth.password_attempts, cfg.auth.verification_attempts) == (3, 3, 3)
    assert cfg.harvest.quota == 10
    assert cfg.harvest.max_years == 5
    assert cfg.browser.headless is False
    assert cfg.output.json_path == "orders.json"
    assert cfg.account.username == ""


def test_env_values_are_picked_up(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AMAZON_USERNAME", "user@example.com")
    monkeypatch.setenv("AMAZON_PASSWORD", "s3cret")
    monkeypatch.setenv("HEADLESS", "true")
    monkeypatch.setenv("ORDERS_JSON_PATH", "out/orders.json")

    cfg = load_config(None)

    assert cfg.account.username == "user@example.com"
    assert cfg.account.password == "s3cret"
    assert "s3cret" not in repr(cfg.account)
    assert cfg.browser.headless is True
    assert cfg.output.json_path == "out/orders.json"


def test_yaml_overrides_env_and_expands_env_vars(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AMAZON_BASE_URL", "https://www.amazon.com")
    monkeypatch.setenv("MY_ORDERS_FILE", "exports/latest.json")
    cfg_path = _write(
        tmp_path,
        "cfg.yaml",
        """
site:
  base_url: "https://www.amazon.in/"
harvest:
  quota: 5
timeouts:
  sign_in_navigation: 60000
output:
  json_path: "${MY_ORDERS_FILE}"
""",
    )

    cfg = load_config(cfg_path)

    assert cfg.site.base_url == "https://www.amazon.in"
    assert cfg.harvest.quota == 5
    assert cfg.harvest.max_years == 5
    assert cfg.timeouts.sign_in_navigation == 60000
    assert cfg.output.json_path == "exports/latest.json"


def test_other_storefront_derives_urls_from_base() -> None:
    cfg = AppConfig.model_validate({"site": {"base_url": "https://www.amazon.com"}})
    assert cfg.site.login_url == "https://www.amazon.com/ap/signin"
    assert cfg.site.order_history_url == "https://www.amazon.com/gp/css/order-history"


def test_year_url_template_requires_placeholder() -> None:
    with pytest.raises(Exception):
        AppConfig.model_validate({"site": {"order_history_year_url": "https://www.amazon.in/your-orders/orders"}})


def test_base_url_must_be_absolute() -> None:
    with pytest.raises(Exception):
        AppConfig.model_validate({"site": {"base_url": "amazon.in"}})


def test_attempt_budgets_must_be_positive() -> None:
    with pytest.raises(Exception):
        AppConfig.model_validate({"auth": {"password_attempts": 0}})


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    cfg_path = _write(tmp_path, "cfg.yaml", "harvest:\n  qouta: 3\n")
    with pytest.raises(Exception):
        load_config(cfg_path)


def test_config_is_immutable() -> None:
    cfg = AppConfig()
    with pytest.raises(Exception):
        cfg.harvest.quota = 20  # type: ignore[misc]
