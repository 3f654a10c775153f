"""Tests for catalog loading from JSON and SQLite."""

import json
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

from cardlens.config import DATA_DIR
from cardlens.models.failure import CatalogLoadError, FailureKind
from cardlens.services import catalog_loader
from cardlens.services.catalog_loader import (
    get_catalog_index,
    load_catalog,
    load_catalog_index,
    row_to_record,
)

ROWS = [
    {
        "id": "base1-58",
        "name": "Pikachu",
        "hp": "40",
        "set_name": "Base",
        "caption": "Pikachu can use the attack Gnaw.",
        "image_url": "https://img.test/base1-58.png",
    },
    {"id": "base1-4", "name": "Charizard", "hp": 120, "set_name": "Base", "caption": ""},
    {"id": "base1-91", "name": "Bill", "hp": None, "set_name": "Base"},
]


@pytest.fixture
def json_catalog(tmp_path: Path) -> Path:
    path = tmp_path / "cards.json"
    path.write_text(json.dumps(ROWS), encoding="utf-8")
    return path


@pytest.fixture
def sqlite_catalog(tmp_path: Path) -> Path:
    path = tmp_path / "cards.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE pokemon_cards "
                "(id TEXT, name TEXT, hp TEXT, set_name TEXT, caption TEXT, image_url TEXT)"
            )
        )
        for row in ROWS:
            conn.execute(
                text(
                    "INSERT INTO pokemon_cards VALUES "
                    "(:id, :name, :hp, :set_name, :caption, :image_url)"
                ),
                {
                    "id": row["id"],
                    "name": row["name"],
                    "hp": None if row.get("hp") is None else str(row["hp"]),
                    "set_name": row.get("set_name"),
                    "caption": row.get("caption"),
                    "image_url": row.get("image_url"),
                },
            )
    engine.dispose()
    return path


class TestRowToRecord:
    def test_parses_hp_string(self) -> None:
        record = row_to_record({"id": "a-1", "name": "Pikachu", "hp": " 60 "})
        assert record.hp == 60

    def test_unparseable_hp_is_none(self) -> None:
        assert row_to_record({"id": "a-1", "name": "Pikachu", "hp": "??"}).hp is None
        assert row_to_record({"id": "a-1", "name": "Pikachu", "hp": True}).hp is None

    def test_optional_columns_default(self) -> None:
        record = row_to_record({"id": "a-1", "name": "Pikachu"})
        assert record.set_name == ""
        assert record.caption == ""
        assert record.image_url is None

    def test_empty_image_url_is_none(self) -> None:
        assert row_to_record({"id": "a-1", "name": "P", "image_url": ""}).image_url is None

    @pytest.mark.parametrize("raw", [70, 70.0, "70", "70.0", " 70 HP"])
    def test_hp_leading_integer(self, raw: object) -> None:
        assert row_to_record({"id": "a-1", "name": "Pikachu", "hp": raw}).hp == 70

    def test_missing_id_raises(self) -> None:
        with pytest.raises(ValueError, match="no id"):
            row_to_record({"name": "Pikachu"})

    def test_missing_name_raises(self) -> None:
        with pytest.raises(ValueError, match="no name"):
            row_to_record({"id": "a-1", "name": " "})


class TestLoadCatalogJson:
    def test_loads_rows_in_order(self, json_catalog: Path) -> None:
        records = load_catalog(json_catalog)

        assert [r.id for r in records] == ["base1-58", "base1-4", "base1-91"]
        assert records[0].hp == 40
        assert records[0].image_url == "https://img.test/base1-58.png"
        assert records[2].hp is None

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogLoadError) as exc_info:
            load_catalog(tmp_path / "absent.json")

        assert exc_info.value.kind == FailureKind.CATALOG_UNAVAILABLE
        assert exc_info.value.status_code == 503
        assert "not found" in exc_info.value.reason

    def test_corrupted_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_text("[{not json", encoding="utf-8")

        with pytest.raises(CatalogLoadError, match="could not be loaded") as exc_info:
            load_catalog(path)
        assert "corrupted" in exc_info.value.reason

    def test_non_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_bytes(b'[{"id": "x-1", "name": "Pok\xe9mon"}]')

        with pytest.raises(CatalogLoadError) as exc_info:
            load_catalog(path)
        assert "corrupted" in exc_info.value.reason

    def test_directory_path(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.mkdir()

        with pytest.raises(CatalogLoadError) as exc_info:
            load_catalog(path)
        assert "unreadable" in exc_info.value.reason

    def test_non_array_document(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_text('{"id": "x"}', encoding="utf-8")

        with pytest.raises(CatalogLoadError) as exc_info:
            load_catalog(path)
        assert "array" in exc_info.value.reason

    def test_invalid_row_aborts_load(self, tmp_path: Path) -> None:
        """No partial catalog is ever returned."""
        path = tmp_path / "cards.json"
        path.write_text(json.dumps([ROWS[0], {"id": "x-1"}]), encoding="utf-8")

        with pytest.raises(CatalogLoadError) as exc_info:
            load_catalog(path)
        assert "row 1" in exc_info.value.reason

    def test_non_object_row(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_text(json.dumps(["Pikachu"]), encoding="utf-8")

        with pytest.raises(CatalogLoadError, match="could not be loaded"):
            load_catalog(path)


class TestLoadCatalogSqlite:
    def test_loads_table(self, sqlite_catalog: Path) -> None:
        records = load_catalog(sqlite_catalog)

        assert [r.id for r in records] == ["base1-58", "base1-4", "base1-91"]
        assert records[1].hp == 120
        assert records[2].hp is None

    def test_missing_table(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.sqlite"
        engine = create_engine(f"sqlite:///{path}")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE other (id TEXT)"))
        engine.dispose()

        with pytest.raises(CatalogLoadError) as exc_info:
            load_catalog(path)
        assert "pokemon_cards" in exc_info.value.reason


class TestCatalogIndexLoading:
    def test_load_catalog_index(self, json_catalog: Path) -> None:
        index = load_catalog_index(json_catalog)

        assert len(index) == 3
        assert [r.id for r in index.by_hp_value(120)] == ["base1-4"]

    def test_get_catalog_index_is_cached(
        self, json_catalog: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(catalog_loader.settings, "catalog_path", json_catalog)
        get_catalog_index.cache_clear()
        try:
            first = get_catalog_index()
            second = get_catalog_index()
        finally:
            get_catalog_index.cache_clear()

        assert first is second
        assert len(first) == 3

    def test_bundled_sample_catalog(self) -> None:
        index = load_catalog_index(DATA_DIR / "pokemon-cards.json")

        assert index.get("base1-58") is not None
        assert index.has_name("pikachu vmax")
        assert all(r.image_url for r in index.records)
