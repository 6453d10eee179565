from __future__ import annotations

import json
from pathlib import Path

import pytest

from revius_backend.models.novelas import NovelaCatalog, NovelaRecord, YearRange
from revius_backend.repositories.novela_catalog import (
    CatalogStoreError,
    JsonFileCatalogStore,
    validate_catalog_payload,
)


def _catalog(*titles: str) -> NovelaCatalog:
    return NovelaCatalog(
        metadata={"totalNovelas": len(titles)},
        novelas=[
            NovelaRecord(
                id=f"n-{i}",
                title=title,
                country="Brasil",
                broadcaster="Globo",
                year=YearRange(start=2000 + i, end=2001 + i),
                genre=["Drama"],
            )
            for i, title in enumerate(titles)
        ],
    )


def test_missing_catalog_loads_empty(tmp_path: Path) -> None:
    store = JsonFileCatalogStore(tmp_path / "data")
    assert store.load().novelas == []
    assert store.backup() is True


def test_save_then_load_preserves_records_and_unknown_fields(tmp_path: Path) -> None:
    store = JsonFileCatalogStore(tmp_path)
    catalog = _catalog("Avenida Brasil")
    catalog.novelas[0].extra["rating"] = 9.1

    store.save(catalog)

    raw = json.loads((tmp_path / "novelas.json").read_text(encoding="utf-8"))
    assert raw["novelas"][0]["year"] == {"start": 2000, "end": 2001}
    assert raw["novelas"][0]["rating"] == 9.1
    assert not list(tmp_path.glob("*.tmp"))

    loaded = store.load()
    assert loaded.novelas[0].title == "Avenida Brasil"
    assert loaded.novelas[0].year == YearRange(start=2000, end=2001)
    assert loaded.novelas[0].extra == {"rating": 9.1}


def test_backup_copies_current_file(tmp_path: Path) -> None:
    store = JsonFileCatalogStore(tmp_path)
    store.save(_catalog("Avenida Brasil"))

    assert store.backup() is True
    store.save(_catalog("Avenida Brasil", "Rei Davi"))

    backup = json.loads((tmp_path / "novelas-backup.json").read_text(encoding="utf-8"))
    assert [n["title"] for n in backup["novelas"]] == ["Avenida Brasil"]
    assert store.file_stats()["backupExists"] is True


def test_corrupt_catalog_raises(tmp_path: Path) -> None:
    (tmp_path / "novelas.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogStoreError, match="Unable to read catalog"):
        JsonFileCatalogStore(tmp_path).load()

    (tmp_path / "novelas.json").write_text(json.dumps({"metadata": {}}), encoding="utf-8")
    with pytest.raises(CatalogStoreError, match="novelas"):
        JsonFileCatalogStore(tmp_path).load()


def test_save_refuses_invalid_catalog(tmp_path: Path) -> None:
    store = JsonFileCatalogStore(tmp_path)
    bad = NovelaCatalog(novelas=[NovelaRecord(id="", title="Sem Id", country="Brasil", broadcaster="SBT")])
    with pytest.raises(CatalogStoreError, match="invalid catalog"):
        store.save(bad)
    assert not (tmp_path / "novelas.json").exists()


def test_lock_is_exclusive_and_released(tmp_path: Path) -> None:
    store = JsonFileCatalogStore(tmp_path, lock_timeout_seconds=0)
    other = JsonFileCatalogStore(tmp_path, lock_timeout_seconds=0)

    with store.lock():
        assert store.lock_path.exists()
        with pytest.raises(CatalogStoreError, match="Timed out"):
            with other.lock():
                pass

    assert not store.lock_path.exists()
    with other.lock():
        pass


def test_stale_lock_is_removed(tmp_path: Path) -> None:
    store = JsonFileCatalogStore(tmp_path, lock_timeout_seconds=0, stale_lock_seconds=-1)
    store.lock_path.write_text("12345", encoding="utf-8")

    with store.lock():
        assert store.lock_path.read_text(encoding="utf-8") != "12345"


def test_validate_catalog_payload() -> None:
    assert validate_catalog_payload([]) == ["Data must be an object"]
    assert validate_catalog_payload({"metadata": {}, "novelas": []}) == []
    errors = validate_catalog_payload({"metadata": {}, "novelas": [{"title": "X"}, "bad"]})
    assert "Novela 'X' missing country" in errors
    assert "Novela 'X' missing id" in errors
    assert "Novela at index 1 is not an object" in errors
