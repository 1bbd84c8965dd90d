"""YAPI interface -> local endpoint conversion.

Pure functions; nothing here performs I/O or raises on odd remote data.
"""

from apihub.model.local import APIBody, APIParam, Endpoint
from apihub.model.remote import RemoteHeader, RemoteInterface, RemoteParam
from apihub.yapi.infer import parse_response


def is_required(raw: object) -> bool:
    """YAPI marks required fields with the string ``"1"``. Nothing else counts."""
    return raw == "1"


def param_location(name: str, path: str) -> str:
    """``path`` if ``name`` is a ``:name`` or ``{name}`` placeholder in ``path``."""
    if f":{name}" in path or f"{{{name}}}" in path:
        return "path"
    return "query"


def convert_param(remote: RemoteParam, location: str) -> APIParam:
    return APIParam(
        name=remote.name,
        type=remote.type,
        param_type=location,
        required=is_required(remote.required),
        description=remote.desc,
    )


def convert_schema_list(remote_params: list[RemoteParam]) -> list[APIParam]:
    """Convert a flat YAPI body schema into body-located params."""
    return [convert_param(p, "body") for p in remote_params]


def convert_headers(remote_headers: list[RemoteHeader]) -> dict[str, str]:
    headers = {}
    for h in remote_headers:
        headers[h.name] = h.value
    return headers


def convert_interface(remote: RemoteInterface) -> Endpoint:
    """Build an Endpoint from a YAPI interface.

    Response fields are inferred from the ``res_body`` sample; a sample that
    is not JSON leaves them empty.
    """
    request_params = [
        convert_param(p, param_location(p.name, remote.path)) for p in remote.req_params
    ]
    request_params += [convert_param(p, "query") for p in remote.req_query]

    endpoint = Endpoint(
        name=remote.title,
        method=remote.method,
        url=remote.path,
        description=remote.desc,
        headers=convert_headers(remote.req_headers),
        request_params=request_params,
    )

    descriptor = remote.req_body_other
    if descriptor.type and descriptor.schema_list:
        endpoint.request_body = APIBody(
            type=descriptor.type,
            data_type="object",
            fields=convert_schema_list(descriptor.schema_list),
        )

    if remote.res_body:
        response_params, response_body = parse_response(remote.res_body)
        endpoint.response_params = response_params or []
        endpoint.response_body = response_body

    return endpoint
