from __future__ import annotations

from pathlib import Path

from bs4 import BeautifulSoup

from revius_backend.ingestion.novelas.config import DEFAULT_IMAGES
from revius_backend.ingestion.novelas.details import (
    NovelaDetails,
    apply_details,
    find_best_image,
    normalize_image_url,
    parse_detail_page,
    union_genres,
    upscale_thumbnail,
)
from revius_backend.models.novelas import NovelaRecord, YearRange


def _fixture(name: str) -> str:
    repo_root = Path(__file__).resolve().parents[3]
    return (repo_root / "tests" / "fixtures" / "wikipedia" / name).read_text(encoding="utf-8")


def _record(**overrides) -> NovelaRecord:
    fields = {
        "id": "amor-sem-igual-1",
        "title": "Amor Sem Igual",
        "country": "Brasil",
        "broadcaster": "Record",
        "genre": ["Drama"],
        "synopsis": "Amor Sem Igual é uma telenovela de Record.",
        "episodes": 180,
        "wikipedia_url": "https://pt.wikipedia.org/wiki/Amor_Sem_Igual",
    }
    fields.update(overrides)
    return NovelaRecord(**fields)


def test_parse_detail_page_reads_infobox() -> None:
    details = parse_detail_page(_fixture("amor_sem_igual.html"))

    assert details.cast == ["Day Mesquita", "Rafael Cardoso", "Bárbara França"]
    assert details.director == "Rogério Passos"
    assert details.author == "Cristianne Fridman"
    assert details.genres == ["Drama", "Romance"]
    assert details.country == "Brasil"
    assert details.language == "Português"
    assert details.episodes == 140
    assert details.year == YearRange(start=2019, end=2020)
    assert details.synopsis == (
        "Amor Sem Igual é uma telenovela brasileira produzida pela RecordTV e exibida entre 2019 e 2020."
    )
    assert details.image_url == (
        "https://upload.wikimedia.org/wikipedia/pt/thumb/a/ab/Amor_Sem_Igual_logo.png/300px-Amor_Sem_Igual_logo.png"
    )


def test_parse_detail_page_without_infobox() -> None:
    details = parse_detail_page("<html><body><div id='mw-content-text'><p>Texto.</p></div></body></html>")
    assert details.cast == []
    assert details.episodes is None
    assert details.year is None
    assert details.synopsis == "Texto."
    assert details.image_url == ""


def test_synopsis_is_truncated() -> None:
    details = parse_detail_page(f"<div class='mw-parser-output'><p>{'a' * 800}</p></div>")
    assert len(details.synopsis) == 500


def test_image_tiers_prefer_infobox_then_thumbnails() -> None:
    html = """
    <div id="mw-content-text">
      <div class="thumb"><img src="//upload.wikimedia.org/wikipedia/commons/a/aa/Scene.jpg" width="220" height="150"></div>
      <img src="//upload.wikimedia.org/wikipedia/commons/b/bb/Big_Photo.jpg" width="900" height="600">
    </div>
    """
    soup = BeautifulSoup(html, "html.parser")
    assert find_best_image(soup) == "https://upload.wikimedia.org/wikipedia/commons/a/aa/Scene.jpg"


def test_poster_like_names_win_within_a_tier() -> None:
    html = """
    <table class="infobox">
      <tr><td><img src="//upload.wikimedia.org/wikipedia/pt/x/xx/Elenco.jpg" width="400" height="300"></td></tr>
      <tr><td><img src="//upload.wikimedia.org/wikipedia/pt/y/yy/Novela_poster.jpg" width="200" height="300"></td></tr>
      <tr><td><img src="https://example.com/poster.jpg" width="500" height="700"></td></tr>
      <tr><td><img src="//upload.wikimedia.org/wikipedia/commons/z/zz/Crystal_Clear_app_poster.png"></td></tr>
    </table>
    """
    soup = BeautifulSoup(html, "html.parser")
    assert find_best_image(soup) == "https://upload.wikimedia.org/wikipedia/pt/y/yy/Novela_poster.jpg"


def test_wiki_local_images_are_not_treated_as_uploads() -> None:
    html = """
    <div class="mw-parser-output">
      <img src="/static/images/mobile/copyright/wikipedia-wordmark-pt.png" width="120" height="60" />
      <img src="/w/resources/assets/banner.jpg" width="400" height="300" />
    </div>
    """
    assert find_best_image(BeautifulSoup(html, "html.parser")) == ""


def test_normalize_and_upscale_image_urls() -> None:
    assert normalize_image_url("//upload.wikimedia.org/a.jpg") == "https://upload.wikimedia.org/a.jpg"
    assert normalize_image_url("/wikipedia/pt/a.jpg") == "https://upload.wikimedia.org/wikipedia/pt/a.jpg"
    assert normalize_image_url(None) == ""
    assert normalize_image_url("/static/images/footer/poweredby_mediawiki.png") == (
        "https://pt.wikipedia.org/static/images/footer/poweredby_mediawiki.png"
    )
    assert normalize_image_url("/w/extensions/banner.png", base_url="https://en.wikipedia.org") == (
        "https://en.wikipedia.org/w/extensions/banner.png"
    )

    small = "https://upload.wikimedia.org/wikipedia/pt/thumb/a/ab/X.png/120px-X.png"
    large = "https://upload.wikimedia.org/wikipedia/pt/thumb/a/ab/X.png/400px-X.png"
    assert upscale_thumbnail(small) == "https://upload.wikimedia.org/wikipedia/pt/thumb/a/ab/X.png/300px-X.png"
    assert upscale_thumbnail(large) == large
    assert upscale_thumbnail("https://upload.wikimedia.org/wikipedia/pt/a/ab/X.png") == (
        "https://upload.wikimedia.org/wikipedia/pt/a/ab/X.png"
    )


def test_union_genres_keeps_order_and_cap() -> None:
    assert union_genres(["Drama", "Romance"], ["Romance", "Comédia"]) == ["Drama", "Romance", "Comédia"]
    assert union_genres(["A", "B", "C", "D"], ["E", "F", "G"]) == ["A", "B", "C", "D", "E"]


def test_apply_details_fills_gaps_and_replaces_placeholders() -> None:
    record = _record()
    outcome = apply_details(record, parse_detail_page(_fixture("amor_sem_igual.html")))

    assert record.cast[0] == "Day Mesquita"
    assert record.episodes == 140
    assert record.year == YearRange(start=2019, end=2020)
    assert record.genre == ["Drama", "Romance"]
    assert record.synopsis.startswith("Amor Sem Igual é uma telenovela brasileira")
    assert record.image_url.endswith("300px-Amor_Sem_Igual_logo.png")
    assert outcome.image_found
    assert outcome.synopsis_found
    assert set(outcome.fields_updated) >= {"cast", "director", "author", "episodes", "year", "synopsis", "image_url"}


def test_apply_details_never_overwrites_real_values() -> None:
    record = _record(
        director="Edson Spinello",
        episodes=150,
        year=YearRange(start=2019),
        synopsis="Uma sinopse escrita à mão que é bem mais longa do que qualquer texto curto.",
        image_url="https://upload.wikimedia.org/wikipedia/pt/c/cc/Cartaz.jpg",
    )
    details = NovelaDetails(
        director="Outro Diretor",
        episodes=140,
        year=YearRange(start=2020),
        synopsis="Curta.",
        image_url="https://upload.wikimedia.org/wikipedia/pt/d/dd/Other.jpg",
    )

    outcome = apply_details(record, details)

    assert record.director == "Edson Spinello"
    assert record.episodes == 150
    assert record.year == YearRange(start=2019)
    assert record.synopsis.startswith("Uma sinopse escrita")
    assert record.image_url.endswith("Cartaz.jpg")
    assert outcome.fields_updated == ()
    assert not outcome.image_found


def test_broadcaster_logo_counts_as_missing_image() -> None:
    record = _record(image_url=DEFAULT_IMAGES["Record"])
    outcome = apply_details(record, NovelaDetails(image_url="https://upload.wikimedia.org/wikipedia/pt/p/pp/Poster.jpg"))
    assert outcome.image_found
    assert record.image_url.endswith("Poster.jpg")
