from __future__ import annotations

from bs4 import BeautifulSoup

from revius_backend.ingestion.novelas.row_parsers import (
    BandRowParser,
    GenericRowParser,
    GloboRowParser,
    RecordRowParser,
    SbtRowParser,
    get_row_parser,
)
from revius_backend.ingestion.novelas.sources import SourceType
from revius_backend.models.novelas import YearRange


def _cells(html: str):
    row = BeautifulSoup(f"<table><tr>{html}</tr></table>", "html.parser").find("tr")
    return row.find_all(["td", "th"], recursive=False)


def test_record_parser_reads_the_third_column() -> None:
    cells = _cells(
        "<td>2020</td><td>21h</td><td><a href='/wiki/Amor_Sem_Igual'>Amor Sem Igual</a></td>"
        "<td>140 capítulos</td><td>Drama romântico</td>"
    )
    parsed = RecordRowParser().parse(cells)

    assert parsed is not None
    assert parsed.title == "Amor Sem Igual"
    assert parsed.wikipedia_url == "https://pt.wikipedia.org/wiki/Amor_Sem_Igual"
    assert parsed.year == YearRange(start=2020)
    assert parsed.episodes == 140
    assert parsed.genres == ["Drama"]


def test_record_parser_falls_back_when_the_title_column_is_missing() -> None:
    parsed = RecordRowParser().parse(_cells("<td>Vidas Opostas</td><td>2006</td>"))
    assert parsed is not None
    assert parsed.title == "Vidas Opostas"
    assert parsed.wikipedia_url == ""


def test_globo_parser_uses_first_column_and_english_wiki() -> None:
    parsed = GloboRowParser().parse(
        _cells("<td><a href='/wiki/Avenida_Brasil_(telenovela)'>Avenida Brasil</a></td><td>2012</td><td>179</td>"),
        headers=["Title", "Year", "Episodes"],
    )
    assert parsed is not None
    assert parsed.title == "Avenida Brasil"
    assert parsed.wikipedia_url == "https://en.wikipedia.org/wiki/Avenida_Brasil_(telenovela)"
    assert parsed.episodes == 179


def test_band_and_sbt_title_columns() -> None:
    band = BandRowParser().parse(_cells("<td>1983</td><td>Maçã do Amor</td><td>Wilson Aguiar Filho</td>"))
    sbt = SbtRowParser().parse(_cells("<td>Carrossel</td><td>2012–2013</td><td>310 capítulos</td>"))

    assert band is not None and band.title == "Maçã do Amor"
    assert sbt is not None and sbt.title == "Carrossel"
    assert sbt.year == YearRange(start=2012, end=2013)
    assert sbt.episodes == 310


def test_header_columns_supply_credits() -> None:
    parsed = SbtRowParser().parse(
        _cells("<td>Cúmplices de um Resgate</td><td>2015</td><td>Iris Abravanel</td><td>Reynaldo Boury</td>"),
        headers=["Título", "Ano", "Autoria", "Direção"],
    )
    assert parsed is not None
    assert parsed.author == "Iris Abravanel"
    assert parsed.director == "Reynaldo Boury"


def test_generic_parser_prefers_the_linked_cell() -> None:
    parsed = GenericRowParser().parse(
        _cells("<td>1</td><td><a href='/wiki/Pantanal'>Pantanal</a></td><td>1990</td>")
    )
    assert parsed is not None
    assert parsed.title == "Pantanal"


def test_blank_rows_are_skipped() -> None:
    assert SbtRowParser().parse(_cells("<td> </td><td></td>")) is None
    assert SbtRowParser().parse([]) is None


def test_get_row_parser_falls_back_to_generic() -> None:
    assert isinstance(get_row_parser(SourceType.RECORD_PAGE), RecordRowParser)
    assert isinstance(get_row_parser("sbt_page"), SbtRowParser)
    assert isinstance(get_row_parser("unknown_page"), GenericRowParser)
    assert get_row_parser(SourceType.BAND_PAGE, base_url="https://es.wikipedia.org").base_url == (
        "https://es.wikipedia.org"
    )
