import json

import pytest
import yaml

from apihub.generator.markdown import generate_html, generate_markdown
from apihub.generator.openapi import build_openapi, generate_openapi, to_openapi_path
from apihub.generator.postman import build_postman
from apihub.model.local import APIBody, APIParam, Collection, Endpoint, Project
from apihub.store.memory import MemoryStore
from apihub.yapi.infer import parse_response


@pytest.fixture
def project_store():
    store = MemoryStore()
    project = store.create_project(Project(name="Shop", description="Shop API"))
    users = store.create_collection(Collection(project_id=project.id, name="Users", description="User APIs"))
    response_params, response_body = parse_response('{"code": 0, "data": {"id": 1, "tags": ["a"]}}')
    store.create_endpoint(Endpoint(
        collection_id=users.id,
        name="Get user",
        method="GET",
        url="/users/:id",
        headers={"Accept": "application/json"},
        description="Fetch one user",
        request_params=[
            APIParam(name="id", type="number", param_type="path", required=True),
            APIParam(name="fields", param_type="query", description="Projection"),
        ],
        response_params=response_params,
        response_body=response_body,
    ))
    store.create_endpoint(Endpoint(
        collection_id=users.id,
        name="Create user",
        method="POST",
        url="https://api.shop.test/users",
        body='{"name": "Ann"}',
        request_body=APIBody(
            type="form",
            fields=[APIParam(name="name", param_type="body", required=True)],
        ),
    ))
    return project, store


class TestMarkdown:
    def test_structure(self, project_store):
        project, store = project_store
        md = generate_markdown(project, store)
        assert md.startswith("# Shop\n")
        assert "## Users" in md
        assert "### GET Get user" in md
        assert "**Endpoint:** `/users/:id`" in md
        assert "Accept: application/json" in md
        assert "| id | path | number | yes |  |" in md
        assert "| data.tags | array | no |  |" in md
        assert '{"name": "Ann"}' in md

    def test_untitled_project(self):
        store = MemoryStore()
        project = store.create_project(Project(name=""))
        assert generate_markdown(project, store).startswith("# API Documentation")

    def test_html_escapes(self, project_store):
        project, store = project_store
        page = generate_html(project, store)
        assert page.startswith("<!DOCTYPE html>")
        assert "<title>Shop</title>" in page
        assert "&quot;name&quot;" in page


class TestOpenApi:
    def test_path_conversion(self):
        assert to_openapi_path("/users/:id") == "/users/{id}"
        assert to_openapi_path("https://host.test/v1/users?x=1") == "/v1/users"
        assert to_openapi_path("users") == "/users"
        assert to_openapi_path("/users/{id}") == "/users/{id}"

    def test_document(self, project_store):
        project, store = project_store
        doc = build_openapi(project, store)
        assert doc["openapi"] == "3.0.0"
        assert doc["info"]["title"] == "Shop"
        assert doc["tags"] == [{"name": "Users", "description": "User APIs"}]

        get = doc["paths"]["/users/{id}"]["get"]
        assert get["summary"] == "Get user"
        params = {p["name"]: p for p in get["parameters"]}
        assert params["id"]["in"] == "path"
        assert params["id"]["required"] is True
        assert params["fields"]["in"] == "query"
        assert params["Accept"]["in"] == "header"

        schema = get["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema["properties"]["code"]["type"] == "number"
        assert schema["properties"]["data"]["properties"]["tags"]["type"] == "array"

        post = doc["paths"]["/users"]["post"]
        body_schema = post["requestBody"]["content"]["application/x-www-form-urlencoded"]["schema"]
        assert body_schema["required"] == ["name"]

    def test_json_and_yaml_render_same_document(self, project_store):
        project, store = project_store
        from_json = json.loads(generate_openapi(project, store))
        from_yaml = yaml.safe_load(generate_openapi(project, store, fmt="yaml"))
        assert from_json == from_yaml


class TestPostman:
    def test_collection(self, project_store):
        project, store = project_store
        coll = build_postman(project, store)
        assert coll["info"]["name"] == "Shop"
        assert coll["info"]["schema"].endswith("collection.json")

        folder = coll["item"][0]
        assert folder["name"] == "Users"
        items = {i["name"]: i["request"] for i in folder["item"]}
        get = items["Get user"]
        assert get["method"] == "GET"
        assert get["url"]["path"] == ["users", ":id"]
        assert get["url"]["query"][0]["key"] == "fields"
        assert get["header"] == [{"key": "Accept", "value": "application/json"}]

        post = items["Create user"]
        assert post["body"]["mode"] == "raw"
        assert post["url"]["path"] == ["users"]
