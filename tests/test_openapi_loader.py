import json
from pathlib import Path

import httpx
import pytest

from openapi_functions.openapi import (
    OpenAPILoader,
    SpecLoadError,
    load_from_json,
    load_from_yaml,
    load_spec,
    load_spec_file,
)

FIXTURES = Path(__file__).parent / "fixtures"


class TestLoadSpec:
    def test_load_yaml_file(self, petstore):
        assert petstore.openapi == "3.0.3"
        assert petstore.info.title == "Swagger Petstore"
        assert list(petstore.paths) == ["/pets", "/pets/{petId}"]

    def test_load_json_file(self, users_spec):
        assert users_spec.info.version == "1.0.0"
        assert set(users_spec.components.parameters) == {"offsetParam", "limitParam"}

    def test_parameter_aliases(self, petstore):
        get_pets = petstore.paths["/pets"].get
        ref_param, header_param = get_pets.parameters
        assert ref_param.ref == "#/components/parameters/limitParam"
        assert ref_param.name == ""
        assert header_param.location == "header"
        assert header_param.schema_.type == "string"

    def test_request_body_schema(self, petstore):
        body = petstore.paths["/pets"].post.request_body
        schema = body.content["application/json"].schema_
        assert schema.type == "object"
        assert schema.required == ["name"]
        assert schema.properties["name"].description == "Name of the pet"

    def test_absent_methods_are_none(self, petstore):
        item = petstore.paths["/pets/{petId}"]
        assert item.put is None
        assert [method for method, _ in item.operations()] == ["GET", "DELETE"]

    def test_unknown_fields_are_ignored(self):
        spec = load_spec(b'{"openapi": "3.1.0", "x-vendor": {"a": 1}, "paths": {}}')
        assert spec.openapi == "3.1.0"
        assert spec.paths == {}

    def test_missing_fields_use_zero_values(self):
        spec = load_spec(b'{"paths": {"/a": {"get": {}}}}')
        operation = spec.paths["/a"].get
        assert spec.info.title == ""
        assert operation.summary == ""
        assert operation.parameters == []
        assert spec.components is None

    def test_numeric_scalars_become_strings(self):
        spec = load_spec("openapi: 3.0\ninfo:\n  title: Numbers\n  version: 1.0\npaths: {}\n")
        assert spec.openapi == "3.0"
        assert spec.info.version == "1.0"

        spec = load_from_json('{"openapi": "3.0.0", "info": {"version": 1}, "paths": {}}')
        assert spec.info.version == "1"

    def test_null_fields_use_zero_values(self):
        spec = load_spec(
            "openapi: 3.0.0\n"
            "info:\n"
            "paths:\n"
            "  /a:\n"
            "    get:\n"
            "      summary: s\n"
            "      description:\n"
            "      parameters:\n"
        )
        operation = spec.paths["/a"].get
        assert spec.info.title == ""
        assert operation.summary == "s"
        assert operation.description == ""
        assert operation.parameters == []


class TestAutoDetect:
    def test_json_is_loaded_via_json(self, monkeypatch):
        def fail(_data):
            raise AssertionError("YAML path must not be used")

        monkeypatch.setattr("openapi_functions.openapi.load_from_yaml", fail)
        spec = load_spec(json.dumps({"openapi": "3.0.0"}))
        assert spec.openapi == "3.0.0"

    def test_yaml_fallback(self):
        spec = load_spec("openapi: 3.0.0\ninfo:\n  title: From YAML\n")
        assert spec.info.title == "From YAML"

    def test_both_fail_reports_yaml_error(self):
        with pytest.raises(SpecLoadError, match="YAML"):
            load_spec("openapi: [3.0.0\n")

    def test_explicit_json_reports_json_error(self):
        with pytest.raises(SpecLoadError, match="JSON"):
            load_from_json("openapi: 3.0.0")

    def test_non_mapping_document_fails(self):
        with pytest.raises(SpecLoadError):
            load_from_json("[1, 2, 3]")
        with pytest.raises(SpecLoadError):
            load_from_yaml("- a\n- b\n")

    def test_empty_yaml_is_an_empty_spec(self):
        spec = load_spec(b"")
        assert spec.paths == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_spec_file(tmp_path / "missing.yaml")


class TestOpenAPILoader:
    @pytest.mark.asyncio
    async def test_load_and_cache(self):
        calls = []
        body = (FIXTURES / "petstore.yaml").read_bytes()

        def handler(request):
            calls.append(str(request.url))
            return httpx.Response(200, content=body)

        loader = OpenAPILoader(transport=httpx.MockTransport(handler))
        first = await loader.load("https://example.com/openapi.yaml")
        second = await loader.load("https://example.com/openapi.yaml")

        assert first.info.title == "Swagger Petstore"
        assert second is first
        assert calls == ["https://example.com/openapi.yaml"]

    @pytest.mark.asyncio
    async def test_non_200_returns_none(self):
        loader = OpenAPILoader(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
        assert await loader.load("https://example.com/missing.json") is None
