import json
from pathlib import Path

from apihub.model.remote import RemoteHeader, RemoteInterface, RemoteParam
from apihub.yapi.convert import (
    convert_headers,
    convert_interface,
    convert_param,
    convert_schema_list,
    is_required,
    param_location,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _fixture_interface() -> RemoteInterface:
    data = json.loads((FIXTURES / "yapi_interface.json").read_text(encoding="utf-8"))
    return RemoteInterface.model_validate(data)


class TestIsRequired:
    def test_only_string_one_is_required(self):
        assert is_required("1") is True

    def test_everything_else_is_optional(self):
        for value in ("0", "", "true", "yes", " 1", "01", 1, True, None):
            assert is_required(value) is False, value


class TestParamLocation:
    def test_colon_placeholder(self):
        assert param_location("id", "/users/:id") == "path"

    def test_brace_placeholder(self):
        assert param_location("id", "/users/{id}/posts") == "path"

    def test_not_in_path(self):
        assert param_location("filter", "/users/:id") == "query"


class TestConvertParam:
    def test_required_path_param(self):
        p = convert_param(RemoteParam(name="id", desc="User id", required="1", type="number"), "path")
        assert p.name == "id"
        assert p.type == "number"
        assert p.param_type == "path"
        assert p.required is True
        assert p.description == "User id"

    def test_optional_param(self):
        p = convert_param(RemoteParam(name="q", required="0"), "query")
        assert p.required is False
        assert p.type == "string"


class TestConvertSchemaList:
    def test_flat_body_params(self):
        params = convert_schema_list([
            RemoteParam(name="name", required="1"),
            RemoteParam(name="age", required="0", type="number"),
        ])
        assert [p.name for p in params] == ["name", "age"]
        assert all(p.param_type == "body" for p in params)
        assert params[0].required is True
        assert params[1].required is False
        assert all(p.children == [] for p in params)

    def test_empty(self):
        assert convert_schema_list([]) == []


class TestConvertHeaders:
    def test_last_value_wins(self):
        headers = convert_headers([
            RemoteHeader(name="Accept", value="text/plain"),
            RemoteHeader(name="Accept", value="application/json"),
            RemoteHeader(name="X-Id", value="1"),
        ])
        assert headers == {"Accept": "application/json", "X-Id": "1"}


class TestConvertInterface:
    def test_fixture_interface(self):
        ep = convert_interface(_fixture_interface())
        assert ep.name == "Get user"
        assert ep.method == "GET"
        assert ep.url == "/api/users/:id"
        assert ep.description == "Fetch a single user"
        assert ep.headers == {"Content-Type": "application/json", "X-Trace": ""}

        params = {p.name: p for p in ep.request_params}
        assert params["id"].param_type == "path"
        assert params["id"].required is True
        assert params["fields"].param_type == "query"
        assert params["fields"].required is False

        assert ep.request_body is None

        response = {p.name: p for p in ep.response_params}
        assert set(response) == {"code", "message", "data"}
        data = {c.name: c for c in response["data"].children}
        assert data["id"].type == "number"
        assert data["manager"].type == "string"
        assert data["tags"].type == "array"
        assert data["roles"].type == "array"
        assert [c.name for c in data["roles"].children] == ["id", "name"]
        assert ep.response_body.json_schema == _fixture_interface().res_body

    def test_request_body_from_schema(self):
        yi = RemoteInterface.model_validate({
            "_id": 2,
            "path": "/users",
            "title": "Create user",
            "method": "POST",
            "req_body_other": {
                "type": "form",
                "schema": [{"name": "name", "required": "1"}, {"name": "avatar", "type": "file"}],
            },
        })
        ep = convert_interface(yi)
        assert ep.request_body.type == "form"
        assert ep.request_body.data_type == "object"
        assert [p.name for p in ep.request_body.fields] == ["name", "avatar"]
        assert ep.request_body.fields[0].required is True

    def test_body_type_without_schema_is_ignored(self):
        yi = RemoteInterface.model_validate({"_id": 3, "req_body_other": {"type": "json", "schema": []}})
        assert convert_interface(yi).request_body is None

    def test_non_json_response_leaves_fields_empty(self):
        yi = RemoteInterface.model_validate({"_id": 4, "title": "t", "res_body": "<xml/>"})
        ep = convert_interface(yi)
        assert ep.response_params == []
        assert ep.response_body is None

    def test_same_path_different_methods(self):
        get = convert_interface(RemoteInterface.model_validate({"_id": 5, "title": "users", "path": "/users", "method": "GET"}))
        post = convert_interface(RemoteInterface.model_validate({"_id": 6, "title": "users", "path": "/users", "method": "POST"}))
        assert (get.name, get.method) != (post.name, post.method)
