from apihub.yapi.infer import MAX_DEPTH, extract_schema, guess_data_type, guess_type, parse_response


def _by_name(params):
    return {p.name: p for p in params}


class TestGuessType:
    def test_scalars(self):
        assert guess_type(None) == "string"
        assert guess_type(True) == "boolean"
        assert guess_type(False) == "boolean"
        assert guess_type(3) == "number"
        assert guess_type(2.5) == "number"
        assert guess_type("x") == "string"

    def test_containers(self):
        assert guess_type({}) == "object"
        assert guess_type([]) == "array"

    def test_data_type(self):
        assert guess_data_type({"a": 1}) == "object"
        assert guess_data_type([1]) == "array"
        assert guess_data_type(1) == "string"
        assert guess_data_type(None) == "string"


class TestExtractSchema:
    def test_scalar_fields(self):
        params = _by_name(extract_schema({"code": 200, "ok": True, "name": None}))
        assert len(params) == 3
        assert params["code"].type == "number"
        assert params["ok"].type == "boolean"
        assert params["name"].type == "string"
        assert all(p.param_type == "body" for p in params.values())
        assert all(p.required is False for p in params.values())
        assert all(p.description == "" for p in params.values())

    def test_nested_object(self):
        params = _by_name(extract_schema({"data": {"user": {"id": 1}}}))
        data = params["data"]
        assert data.type == "object"
        assert data.children[0].name == "user"
        assert data.children[0].type == "object"
        assert data.children[0].children[0].name == "id"
        assert data.children[0].children[0].type == "number"

    def test_array_uses_first_element_only(self):
        params = _by_name(extract_schema({"items": [{"id": 1}, {"id": 2, "extra": True}]}))
        items = params["items"]
        assert items.type == "array"
        assert [c.name for c in items.children] == ["id"]
        assert items.children[0].type == "number"

    def test_array_of_scalars_has_no_children(self):
        params = _by_name(extract_schema({"tags": ["a", "b"]}))
        assert params["tags"].type == "array"
        assert params["tags"].children == []

    def test_empty_array(self):
        assert extract_schema([]) == []
        params = _by_name(extract_schema({"items": []}))
        assert params["items"].children == []

    def test_top_level_array(self):
        params = extract_schema([{"id": 1, "name": "x"}, {"other": 1}])
        assert {p.name for p in params} == {"id", "name"}

    def test_top_level_scalar(self):
        assert extract_schema(42) == []
        assert extract_schema("text") == []
        assert extract_schema(None) == []

    def test_scalar_fields_have_no_children(self):
        params = _by_name(extract_schema({"n": 1, "s": "x"}))
        assert params["n"].children == []
        assert params["s"].children == []

    def test_deep_nesting_is_capped(self):
        value = 1
        for _ in range(MAX_DEPTH + 10):
            value = {"a": value}
        param = extract_schema(value)[0]
        depth = 1
        while param.children:
            param = param.children[0]
            depth += 1
        assert depth == MAX_DEPTH
        assert param.type == "object"

    def test_nested_arrays_are_capped(self):
        value = [{"id": 1}]
        for _ in range(2000):
            value = [value]
        assert extract_schema(value) == []


class TestParseResponse:
    def test_invalid_json(self):
        assert parse_response("not json") == (None, None)
        assert parse_response("") == (None, None)

    def test_object_body(self):
        raw = '{"code": 0, "data": {"id": 1}}'
        params, body = parse_response(raw)
        assert {p.name for p in params} == {"code", "data"}
        assert body.type == "json"
        assert body.data_type == "object"
        assert body.fields == params
        assert body.json_schema == raw

    def test_array_body(self):
        raw = '[{"id": 1}]'
        params, body = parse_response(raw)
        assert body.data_type == "array"
        assert params[0].name == "id"

    def test_scalar_body(self):
        params, body = parse_response("123")
        assert params == []
        assert body.data_type == "string"
        assert body.json_schema == "123"

    def test_too_deep_for_decoder(self):
        raw = '{"a":' * 5000 + "1" + "}" * 5000
        assert parse_response(raw) == (None, None)

    def test_moderately_deep_body_keeps_top_fields(self):
        raw = '{"a":' * 100 + "1" + "}" * 100
        params, body = parse_response(raw)
        assert params[0].name == "a"
        assert body.json_schema == raw
