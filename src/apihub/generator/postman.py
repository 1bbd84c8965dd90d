"""Postman Collection v2.1 export.

One folder per collection, one request per endpoint.
"""

import json
from urllib.parse import urlsplit

from apihub.model.local import Endpoint, Project
from apihub.store.base import ProjectStore

POSTMAN_SCHEMA = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


def build_postman(project: Project, store: ProjectStore) -> dict:
    folders = []
    for col in store.get_collections_by_project(project.id):
        folders.append({
            "name": col.name,
            "description": col.description,
            "item": [_request_item(ep) for ep in store.get_endpoints_by_collection(col.id)],
        })

    return {
        "info": {
            "name": project.name,
            "description": project.description,
            "schema": POSTMAN_SCHEMA,
        },
        "item": folders,
    }


def generate_postman(project: Project, store: ProjectStore) -> str:
    return json.dumps(build_postman(project, store), indent=2, ensure_ascii=False)


def _request_item(ep: Endpoint) -> dict:
    request = {
        "method": ep.method.upper(),
        "header": [{"key": k, "value": v} for k, v in ep.headers.items()],
        "url": {
            "raw": ep.url,
            "path": [seg for seg in urlsplit(ep.url).path.split("/") if seg],
            "query": [
                {"key": p.name, "value": "", "description": p.description}
                for p in ep.request_params
                if p.param_type == "query"
            ],
        },
        "description": ep.description,
    }
    if ep.body:
        request["body"] = {"mode": "raw", "raw": ep.body, "options": {"raw": {"language": "json"}}}
    return {"name": ep.name, "request": request}
