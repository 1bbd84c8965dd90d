"""Send a stored endpoint as a live HTTP request.

``{{name}}`` placeholders in the URL, headers and raw body are filled from
the chosen environment. Placeholders with no matching variable are sent as
written. A relative URL (what YAPI sync stores) is joined onto the
environment's ``base_url`` variable.
"""

import re
import time

import requests
import structlog
from pydantic import BaseModel

from apihub.errors import ConnectionFailedError, InvalidConfigError
from apihub.model.local import Endpoint, Environment

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0
BASE_URL_VARIABLE = "base_url"

_PLACEHOLDER = re.compile(r"\{\{\s*([\w.-]+)\s*\}\}")


class RequestResult(BaseModel):
    status_code: int
    status: str
    headers: dict[str, str] = {}
    body: str = ""
    duration_ms: int = 0


def substitute(text: str, variables: dict[str, str]) -> str:
    """Replace ``{{name}}`` with ``variables[name]`` where it is defined."""
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), m.group(0)), text)


def resolve_url(url: str, variables: dict[str, str]) -> str:
    url = substitute(url, variables)
    if url.startswith(("http://", "https://")):
        return url
    base_url = variables.get(BASE_URL_VARIABLE, "")
    if not base_url:
        raise InvalidConfigError(
            f"endpoint url {url!r} is relative and no {BASE_URL_VARIABLE} variable is set"
        )
    return f"{substitute(base_url, variables).rstrip('/')}/{url.lstrip('/')}"


def send_request(
    endpoint: Endpoint,
    environment: Environment | None = None,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    variables: dict[str, str] | None = None,
) -> RequestResult:
    """Send ``endpoint`` and report status, headers, body and elapsed time.

    ``variables`` override the environment's values. Any status code is a
    result; only transport failures raise :class:`ConnectionFailedError`.
    """
    merged = dict(environment.variables) if environment else {}
    merged.update(variables or {})

    url = resolve_url(endpoint.url, merged)
    headers = {k: substitute(v, merged) for k, v in endpoint.headers.items()}
    body = substitute(endpoint.body, merged) if endpoint.body else None

    own_session = session is None
    session = session or requests.Session()
    start = time.perf_counter()
    try:
        resp = session.request(
            endpoint.method.upper(),
            url,
            headers=headers,
            data=body.encode("utf-8") if body is not None else None,
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise ConnectionFailedError(f"failed to send request: {e}") from e
    finally:
        if own_session:
            session.close()
    duration_ms = int((time.perf_counter() - start) * 1000)

    logger.info(
        "request.sent",
        method=endpoint.method.upper(),
        # query strings may carry credentials
        url=url.split("?", 1)[0],
        status_code=resp.status_code,
        duration_ms=duration_ms,
    )
    return RequestResult(
        status_code=resp.status_code,
        status=f"{resp.status_code} {resp.reason or ''}".strip(),
        headers=dict(resp.headers),
        body=resp.text,
        duration_ms=duration_ms,
    )
