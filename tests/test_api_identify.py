"""Tests for identification endpoints."""

from pathlib import Path

import httpx
import pytest
import respx
from httpx import ASGITransport, AsyncClient
from PIL import Image

from cardlens.api.dependencies import get_optional_identifier
from cardlens.imaging.matcher import FingerprintIndex
from cardlens.main import app
from cardlens.models.locale import LocaleTables
from cardlens.services.catalog_index import CatalogIndex
from cardlens.services.identification import CardIdentifier


@pytest.fixture
def identifier(
    catalog_index: CatalogIndex, locale_tables: LocaleTables, tmp_path: Path
) -> CardIdentifier:
    fingerprints = FingerprintIndex(cache_path=tmp_path / "dhashes_8x11.json")
    return CardIdentifier(catalog_index, locale_tables, fingerprints)


@pytest.fixture
async def client(identifier: CardIdentifier):
    app.dependency_overrides[get_optional_identifier] = lambda: identifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestIdentifyText:
    async def test_ranked_candidates(self, client: AsyncClient) -> None:
        response = await client.post(
            "/identify/text",
            json={"text": "Basic\nPikachu 60 HP\nThunder Shock 20\nweakness\n4/102"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["fields"]["name"] == "pikachu"
        assert data["fields"]["hp"] == 60
        assert data["fields"]["set_number"] == "4/102"
        assert [c["id"] for c in data["candidates"]] == ["xy1-4"]
        assert data["candidates"][0]["score"] == 120
        assert data["candidates"][0]["reasons"]

    async def test_with_zones_and_words(self, client: AsyncClient) -> None:
        response = await client.post(
            "/identify/text",
            json={
                "text": "Glumanda 50 KP Glut 10 46/102",
                "words": ["glumanda", "50", "kp", "glut", "10"],
                "zones": {"top": "Glumanda 50 KP", "middle": "Glut 10", "bottom": "46/102"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["fields"]["name"] == "charmander"
        assert data["candidates"][0]["id"] == "base1-46"

    async def test_no_match_is_not_an_error(self, client: AsyncClient) -> None:
        response = await client.post("/identify/text", json={"text": "Lightning Bolt"})

        assert response.status_code == 200
        assert response.json()["candidates"] == []

    async def test_missing_text_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/identify/text", json={"words": ["pikachu"]})

        assert response.status_code == 422


class TestIdentifyImage:
    async def test_match(
        self, client: AsyncClient, encode_png, checker_image: Image.Image
    ) -> None:
        with respx.mock(assert_all_called=False) as router:
            router.route(host="test").pass_through()
            router.get(url__startswith="https://img.test/").mock(
                return_value=httpx.Response(200, content=encode_png(checker_image))
            )

            response = await client.post(
                "/identify/image",
                content=encode_png(checker_image),
                headers={"Content-Type": "image/png"},
            )

        assert response.status_code == 200
        assert response.json()["match"] == {"id": "base1-58", "name": "Pikachu", "distance": 0}

    async def test_no_match_returns_null(
        self,
        client: AsyncClient,
        encode_png,
        gradient_image: Image.Image,
        rising_image: Image.Image,
    ) -> None:
        with respx.mock(assert_all_called=False) as router:
            router.route(host="test").pass_through()
            router.get(url__startswith="https://img.test/").mock(
                return_value=httpx.Response(200, content=encode_png(gradient_image))
            )

            response = await client.post("/identify/image", content=encode_png(rising_image))

        assert response.status_code == 200
        assert response.json() == {"match": None}

    async def test_empty_body(self, client: AsyncClient) -> None:
        response = await client.post("/identify/image", content=b"")

        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_input"

    async def test_undecodable_body(
        self, client: AsyncClient, identifier: CardIdentifier
    ) -> None:
        identifier.fingerprints.save_cache([])

        response = await client.post("/identify/image", content=b"not an image")

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "invalid_image"
        assert data["suggestion"]


class TestGetCard:
    async def test_found(self, client: AsyncClient) -> None:
        response = await client.get("/cards/base1-4")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Charizard"
        assert data["hp"] == 120
        assert data["set_name"] == "Base"

    async def test_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/cards/missing-1")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"


class TestServiceUnavailable:
    async def test_identify_before_startup(self) -> None:
        app.dependency_overrides[get_optional_identifier] = lambda: None
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.post("/identify/text", json={"text": "Pikachu"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["kind"] == "service_unavailable"
