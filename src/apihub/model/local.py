"""Local data models for projects, collections and endpoints.

Everything synced from YAPI, everything the documentation generators read,
and the environments used when sending requests go through these models.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class APIParam(BaseModel):
    """A request or response field, possibly nested."""

    name: str
    type: str = "string"  # string / number / boolean / object / array
    param_type: str = "query"  # path / query / header / body
    required: bool = False
    description: str = ""
    default_value: Any = None
    children: list["APIParam"] = []


class APIBody(BaseModel):
    """Request or response body structure."""

    type: str = "json"  # json / form-data / raw / xml
    data_type: str = "object"  # object / array / string
    fields: list[APIParam] = []
    example: Any = None
    json_schema: str = ""


class Project(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    user_id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Collection(BaseModel):
    """A named group of endpoints inside a project."""

    id: str = ""
    project_id: str
    name: str
    description: str = ""
    parent_id: str | None = None
    sort_order: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Endpoint(BaseModel):
    """A single API endpoint with its request and response structure."""

    id: str = ""
    collection_id: str = ""
    name: str
    method: str  # GET / POST / PUT / DELETE / PATCH
    url: str
    headers: dict[str, str] = {}
    body: str | None = None
    description: str = ""
    sort_order: int = 0
    request_params: list[APIParam] = []
    request_body: APIBody | None = None
    response_params: list[APIParam] = []
    response_body: APIBody | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Environment(BaseModel):
    """Named set of variables substituted into requests as ``{{name}}``."""

    id: str = ""
    project_id: str
    name: str
    variables: dict[str, str] = {}
    is_default: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SyncConfig(BaseModel):
    """Where to sync from (YAPI) and where to sync to (local project)."""

    project_id: str = ""
    yapi_url: str = ""
    yapi_token: str = ""
    yapi_project_id: int = 0


class SyncStats(BaseModel):
    """Counters for one sync pass. Rebuilt every run, never persisted."""

    created_collections: int = 0
    updated_collections: int = 0
    created_endpoints: int = 0
    updated_endpoints: int = 0
    skipped_endpoints: int = 0  # category not fetched in this pass
    failed_collections: int = 0
    failed_endpoints: int = 0
