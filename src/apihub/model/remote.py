"""YAPI wire models.

These mirror what the YAPI open API returns. Fields are loosely typed on the
remote side (``required`` is a string flag, ``req_body_other`` is sometimes a
JSON text), so the models accept what arrives and leave interpretation to
:mod:`apihub.yapi.convert`.
"""

import json
from typing import Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")


class _RemoteModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # YAPI sends null for unset fields; let the defaults apply
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class RemoteProject(_RemoteModel):
    """A YAPI project as returned by ``/project/get``."""

    id: int = Field(alias="_id")
    name: str = ""
    basepath: str = ""
    uid: int = 0
    icon: str = ""
    color: str = ""
    project_type: str = ""


class RemoteCategory(_RemoteModel):
    """An interface category (``/interface/getCatMenu``)."""

    id: int = Field(alias="_id")
    name: str = ""
    project_id: int = 0
    index: int = Field(default=0, validation_alias=AliasChoices("index", "order"))


class RemoteParam(_RemoteModel):
    """A request parameter or body schema entry.

    ``required`` is kept as received; YAPI sends ``"1"`` or ``"0"``.
    """

    name: str = ""
    desc: str = ""
    required: str | int | None = None
    type: str = "string"


class RemoteHeader(_RemoteModel):
    name: str = ""
    value: str = ""
    desc: str = ""
    required: str | int | None = None


class RemoteBodyDescriptor(_RemoteModel):
    type: str = ""
    schema_list: list[RemoteParam] = Field(default=[], alias="schema")


class RemoteInterface(_RemoteModel):
    """A single YAPI interface definition."""

    id: int = Field(alias="_id")
    project_id: int = 0
    catid: int = 0
    path: str = ""
    title: str = ""
    method: str = "GET"
    status: str = ""
    req_params: list[RemoteParam] = []
    req_query: list[RemoteParam] = []
    req_body_other: RemoteBodyDescriptor = Field(default_factory=RemoteBodyDescriptor)
    req_headers: list[RemoteHeader] = []
    res_body: str = ""
    desc: str = ""
    up_time: int = 0

    @field_validator("req_body_other", mode="before")
    @classmethod
    def _decode_body_descriptor(cls, value: Any) -> Any:
        # YAPI stores the JSON-schema text here for json bodies
        if value is None:
            return {}
        if isinstance(value, str):
            if not value.strip():
                return {}
            try:
                value = json.loads(value)
            except (json.JSONDecodeError, RecursionError):
                return {}
        if not isinstance(value, dict):
            return {}
        if not isinstance(value.get("schema", []), list):
            value = {k: v for k, v in value.items() if k != "schema"}
        if not isinstance(value.get("type", ""), str):
            value = {k: v for k, v in value.items() if k != "type"}
        return value


class InterfacePage(_RemoteModel):
    """Payload of ``list_cat`` and ``get_list``."""

    items: list[RemoteInterface] = Field(default=[], alias="list")
    count: int = 0
    total: int = 0


class EnvelopeHeader(_RemoteModel):
    """The part of every YAPI response that is always present."""

    errcode: int
    errmsg: str = ""
    data: Any = None


class Envelope(_RemoteModel, Generic[T]):
    """A fully decoded ``{errcode, errmsg, data}`` response.

    ``data`` is ``None`` when YAPI sends ``null`` or leaves it out.
    """

    errcode: int
    errmsg: str = ""
    data: T | None = None


ProjectEnvelope = Envelope[RemoteProject]
CategoryMenuEnvelope = Envelope[list[RemoteCategory]]
InterfacePageEnvelope = Envelope[InterfacePage]
