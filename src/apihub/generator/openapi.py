"""OpenAPI 3.0 export of a project."""

import json
import re
from urllib.parse import urlsplit

import yaml

from apihub.model.local import APIParam, Endpoint, Project
from apihub.store.base import ProjectStore

OPENAPI_VERSION = "3.0.0"
DEFAULT_SERVER = "https://api.example.com"

_COLON_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

_TYPES = {"string", "number", "integer", "boolean", "object", "array"}


def to_openapi_path(url: str) -> str:
    """Drop scheme and host, and turn ``:id`` placeholders into ``{id}``."""
    if url.startswith(("http://", "https://")):
        url = urlsplit(url).path or "/"
    if not url.startswith("/"):
        url = "/" + url
    return _COLON_PARAM.sub(r"{\1}", url)


def build_openapi(project: Project, store: ProjectStore) -> dict:
    """Build the OpenAPI document as a plain dict."""
    doc = {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": project.name or "API Documentation",
            "description": project.description,
            "version": "1.0.0",
        },
        "servers": [{"url": DEFAULT_SERVER}],
        "tags": [],
        "paths": {},
    }

    for col in store.get_collections_by_project(project.id):
        doc["tags"].append({"name": col.name, "description": col.description})
        for ep in store.get_endpoints_by_collection(col.id):
            path = to_openapi_path(ep.url)
            doc["paths"].setdefault(path, {})[ep.method.lower()] = _operation(ep, col.name)

    return doc


def generate_openapi(project: Project, store: ProjectStore, fmt: str = "json") -> str:
    """Render the OpenAPI document as ``json`` or ``yaml``."""
    doc = build_openapi(project, store)
    if fmt == "yaml":
        return yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)
    return json.dumps(doc, indent=2, ensure_ascii=False)


def _operation(ep: Endpoint, tag: str) -> dict:
    op = {
        "tags": [tag],
        "summary": ep.name,
        "description": ep.description,
        "parameters": [],
        "responses": {"200": {"description": "Success"}},
    }

    for p in ep.request_params:
        if p.param_type not in ("path", "query", "header"):
            continue
        op["parameters"].append({
            "name": p.name,
            "in": p.param_type,
            # path params are always required in OpenAPI
            "required": p.required or p.param_type == "path",
            "description": p.description,
            "schema": {"type": _schema_type(p.type)},
        })
    for name, value in ep.headers.items():
        op["parameters"].append({
            "name": name,
            "in": "header",
            "required": False,
            "schema": {"type": "string", "example": value},
        })

    if ep.request_body and ep.request_body.fields:
        content_type = _content_type(ep.request_body.type)
        op["requestBody"] = {
            "content": {content_type: {"schema": params_to_schema(ep.request_body.fields)}},
        }

    if ep.response_body:
        schema = params_to_schema(ep.response_body.fields)
        if ep.response_body.data_type == "array":
            schema = {"type": "array", "items": schema}
        op["responses"]["200"]["content"] = {"application/json": {"schema": schema}}

    return op


def params_to_schema(params: list[APIParam]) -> dict:
    """Convert a field list into an object schema."""
    schema: dict = {"type": "object", "properties": {}}
    required = []
    for p in params:
        schema["properties"][p.name] = _param_schema(p)
        if p.required:
            required.append(p.name)
    if required:
        schema["required"] = required
    return schema


def _param_schema(p: APIParam) -> dict:
    t = _schema_type(p.type)
    if t == "object":
        prop = params_to_schema(p.children)
    elif t == "array":
        prop = {"type": "array", "items": params_to_schema(p.children) if p.children else {}}
    else:
        prop = {"type": t}
    if p.description:
        prop["description"] = p.description
    return prop


def _schema_type(t: str) -> str:
    t = (t or "string").lower()
    return t if t in _TYPES else "string"


def _content_type(body_type: str) -> str:
    return {
        "json": "application/json",
        "form": "application/x-www-form-urlencoded",
        "form-data": "multipart/form-data",
        "xml": "application/xml",
        "raw": "text/plain",
    }.get(body_type, "application/json")
