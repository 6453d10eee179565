from __future__ import annotations

import pytest

from revius_backend.utils.env import env_float, optional_env, require_env


def test_require_env_returns_trimmed_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REVIUS_TEST_VALUE", "  abc ")
    assert require_env("REVIUS_TEST_VALUE") == "abc"


def test_require_env_raises_when_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REVIUS_TEST_VALUE", raising=False)
    with pytest.raises(RuntimeError, match="REVIUS_TEST_VALUE"):
        require_env("REVIUS_TEST_VALUE")


def test_optional_env_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REVIUS_TEST_VALUE", "   ")
    assert optional_env("REVIUS_TEST_VALUE") is None


def test_env_float(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REVIUS_TEST_DELAY", raising=False)
    assert env_float("REVIUS_TEST_DELAY", 3.0) == 3.0

    monkeypatch.setenv("REVIUS_TEST_DELAY", "0.5")
    assert env_float("REVIUS_TEST_DELAY", 3.0) == 0.5

    monkeypatch.setenv("REVIUS_TEST_DELAY", "fast")
    with pytest.raises(RuntimeError, match="must be a number"):
        env_float("REVIUS_TEST_DELAY", 3.0)
