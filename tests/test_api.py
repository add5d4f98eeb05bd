"""End-to-end tests for the find endpoints with require filters."""

from __future__ import annotations

import json
from typing import Any, Optional

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from relpath.api.interceptor import RequireFilterInterceptor
from relpath.api.router import create_app, create_find_router
from relpath.config import RelpathSettings
from relpath.core.errors import DataAccessFailure
from relpath.runtime.data_access import DataAccess

RESOURCES = {
    "/countries": "Country",
    "/cities": "City",
    "/people": "Person",
    "/products": "Product",
}


class UnavailableDataAccess(DataAccess):
    async def find(self, entity: str, *, where: Optional[dict] = None, include: Any = None):
        raise DataAccessFailure(entity, "database is down")


@pytest.fixture
def settings() -> RelpathSettings:
    return RelpathSettings(FILTER_PARAM="filter")


@pytest.fixture
def client(registry, data_access, settings) -> TestClient:
    return TestClient(create_app(registry, data_access, RESOURCES, settings=settings))


def _get(client: TestClient, path: str, filter_: Optional[dict] = None):
    params = {"filter": json.dumps(filter_)} if filter_ is not None else None
    return client.get(path, params=params)


class TestFind:
    def test_without_filter_returns_everything(self, client) -> None:
        response = client.get("/people")

        assert response.status_code == 200
        assert len(response.json()) == 8

    def test_filter_without_require(self, client) -> None:
        response = _get(client, "/people", {"where": {"name": "Jane"}})

        assert [person["id"] for person in response.json()] == [122]

    def test_require_belongs_to(self, client) -> None:
        response = _get(client, "/people", {"order": "id", "require": {"city": {"name": "Auckland"}}})

        assert response.status_code == 200
        assert [person["id"] for person in response.json()] == [111, 112]

    def test_require_has_many(self, client) -> None:
        response = _get(client, "/countries", {"require": {"cities.people": {"name": "Seth"}}})

        assert [country["id"] for country in response.json()] == [200]

    def test_require_two_paths(self, client) -> None:
        response = _get(client, "/people", {
            "require": {
                "city.country": {"name": "NZ"},
                "products": {"name": "A1"},
            },
        })

        assert [person["id"] for person in response.json()] == [111]

    def test_require_with_where_and_include(self, client) -> None:
        response = _get(client, "/people", {
            "where": {"name": {"like": "J%"}},
            "require": {"city.country": {"name": "NZ"}},
            "include": "products",
        })

        people = response.json()
        assert [person["name"] for person in people] == ["John", "Joe", "Jeff", "Jane"]
        assert people[0]["products"][0]["name"] == "A1"

    def test_order_and_window(self, client) -> None:
        response = _get(client, "/products", {"order": "name DESC", "skip": 1, "limit": 2})

        assert [product["name"] for product in response.json()] == ["D1", "C2"]


class TestErrors:
    def test_malformed_filter(self, client) -> None:
        response = client.get("/people", params={"filter": "abcd"})

        assert response.status_code == 400
        assert response.json()["type"] == "MalformedFilter"

    @pytest.mark.parametrize("window", [{"limit": "ten"}, {"skip": [1]}, {"offset": -1}, {"order": ["name", " "]}])
    def test_malformed_window(self, client, window) -> None:
        response = _get(client, "/products", window)

        assert response.status_code == 400
        assert response.json()["type"] == "MalformedFilter"

    def test_unknown_relation(self, client) -> None:
        response = _get(client, "/people", {"require": {"planet": {"name": "Mars"}}})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Entity 'Person' has no relation 'planet'",
            "type": "UnknownRelation",
        }

    def test_data_access_failure(self, registry, settings) -> None:
        client = TestClient(create_app(registry, UnavailableDataAccess(), RESOURCES, settings=settings))

        response = _get(client, "/people", {"require": {"city": {"name": "Auckland"}}})

        assert response.status_code == 502
        assert response.json()["type"] == "DataAccessFailure"

    def test_unregistered_resource_entity(self, registry, data_access, settings) -> None:
        with pytest.raises(ValueError):
            create_find_router(registry, data_access, {"/planets": "Planet"}, settings)


def test_graph_endpoint(client, registry) -> None:
    response = client.get("/__graph")

    assert response.status_code == 200
    assert response.json() == registry.to_dict()


def test_custom_filter_param(registry, data_access) -> None:
    settings = RelpathSettings(FILTER_PARAM="q")
    client = TestClient(create_app(registry, data_access, RESOURCES, settings=settings))

    response = client.get("/cities", params={"q": json.dumps({"require": {"country": {"name": "AUS"}}})})

    assert [city["id"] for city in response.json()] == [210, 220]


def test_interceptor_as_dependency(registry, data_access, settings) -> None:
    interceptor = RequireFilterInterceptor(registry, data_access, settings)
    app = FastAPI()

    @app.get("/compiled")
    async def compiled(filter_: Optional[dict] = Depends(interceptor.dependency("Person"))):
        return {"filter": interceptor.serialize(filter_) if filter_ is not None else None}

    client = TestClient(app)

    assert client.get("/compiled").json() == {"filter": None}
    body = _get(client, "/compiled", {"require": {"city": {"name": "Auckland"}}}).json()
    assert json.loads(body["filter"]) == {"where": {"and": [{"city_id": {"in": [110]}}]}}
