from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from revius_backend.ingestion.novelas.scraper import ScrapeResult, ScrapeStats
from revius_backend.models.novelas import NovelaCatalog, NovelaRecord
from scripts import scrape_novelas


def test_main_builds_options_from_flags(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv("NOVELA_SCRAPER_DELAY_SECONDS", raising=False)
    captured: dict[str, Any] = {}

    def _fake_run_scrape(options, *, config, use_browser):
        captured.update(options=options, config=config, use_browser=use_browser)
        catalog = NovelaCatalog(
            metadata={"countries": ["Brasil"], "broadcasters": ["SBT"]},
            novelas=[NovelaRecord(id="carrossel-1", title="Carrossel", country="Brasil", broadcaster="SBT")],
        )
        return ScrapeResult(success=True, stats=ScrapeStats(sources_processed=1), data=catalog)

    monkeypatch.setattr(scrape_novelas, "run_scrape", _fake_run_scrape)

    exit_code = scrape_novelas.main(
        ["--countries", "Brasil, México", "--no-enhance", "--max-enhance", "10", "--output-dir", str(tmp_path), "--http"]
    )

    assert exit_code == 0
    options = captured["options"]
    assert options.countries == ("Brasil", "México")
    assert options.enhance_details is False
    assert options.merge_with_existing is True
    assert options.max_to_enhance == 10
    assert captured["config"].output_dir == tmp_path
    assert captured["config"].delay_between_requests == 3.0
    assert captured["use_browser"] is False
    out = capsys.readouterr().out
    assert "Total novelas: 1" in out
    assert str(tmp_path / "novelas.json") in out


def test_main_returns_one_on_failure(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(
        scrape_novelas,
        "run_scrape",
        lambda options, *, config, use_browser: ScrapeResult(success=False, stats=ScrapeStats(), error="disk full"),
    )

    assert scrape_novelas.main(["--no-merge"]) == 1
    assert "Scraper failed: disk full" in capsys.readouterr().out


def test_main_reads_request_delay_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOVELA_SCRAPER_DELAY_SECONDS", "0.5")
    captured: dict[str, Any] = {}

    def _fake_run_scrape(options, *, config, use_browser):
        captured["config"] = config
        return ScrapeResult(success=False, stats=ScrapeStats(), error="stopped")

    monkeypatch.setattr(scrape_novelas, "run_scrape", _fake_run_scrape)

    assert scrape_novelas.main(["--output-dir", str(tmp_path), "--http"]) == 1
    assert captured["config"].delay_between_requests == 0.5
