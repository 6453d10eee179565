from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from revius_backend.ingestion.list_importer import ImportValidationError
from revius_backend.models.lists import ImportResult
from scripts import import_external_list


class _FakeMatcher:
    closed = False

    def __enter__(self) -> "_FakeMatcher":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.closed = True


@pytest.fixture
def matcher(monkeypatch: pytest.MonkeyPatch) -> _FakeMatcher:
    fake = _FakeMatcher()
    monkeypatch.setattr(import_external_list, "build_default_matcher", lambda catalog_store=None: fake)
    monkeypatch.setattr(import_external_list, "create_supabase_admin_client", lambda: MagicMock())
    return fake


def test_main_prints_result_json(matcher: _FakeMatcher, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    calls: list[tuple[Any, ...]] = []

    def _fake_import(url, service, owner_user_id, *, db, matcher):
        calls.append((url, service, owner_user_id))
        return ImportResult(
            success=True,
            list_id="list-1",
            list_name="Faves",
            items_count=2,
            matched_count=2,
            failed_count=0,
            match_percentage=100,
        )

    monkeypatch.setattr(import_external_list, "import_list", _fake_import)

    exit_code = import_external_list.main(
        ["--url", "https://letterboxd.com/a/list/faves/", "--owner-user-id", "user-1"]
    )

    assert exit_code == 0
    assert calls == [("https://letterboxd.com/a/list/faves/", "letterboxd", "user-1")]
    assert json.loads(capsys.readouterr().out)["fullyMatched"] is True
    assert matcher.closed


def test_main_reports_known_errors(matcher: _FakeMatcher, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    def _fake_import(*_args, **_kwargs):
        raise ImportValidationError("Unsupported service: 'imdb' (supported: letterboxd)")

    monkeypatch.setattr(import_external_list, "import_list", _fake_import)

    exit_code = import_external_list.main(
        ["--url", "https://letterboxd.com/a/list/faves/", "--service", "imdb", "--owner-user-id", "user-1"]
    )

    assert exit_code == 1
    assert "Unsupported service" in capsys.readouterr().err
