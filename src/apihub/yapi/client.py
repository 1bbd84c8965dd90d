"""YAPI open API client.

Read-only access to projects, categories and interfaces. Every request is a
GET authenticated by the project token in the query string, and every
response is a ``{errcode, errmsg, data}`` envelope.
"""

from typing import Any, Callable

import requests
import structlog
from pydantic import BaseModel, ValidationError

from apihub.errors import (
    ConnectionFailedError,
    DecodeError,
    NoInterfacesError,
    RemoteError,
)
from apihub.model.remote import (
    CategoryMenuEnvelope,
    EnvelopeHeader,
    InterfacePage,
    InterfacePageEnvelope,
    ProjectEnvelope,
    RemoteCategory,
    RemoteInterface,
    RemoteProject,
)
from apihub.sync.cancel import CancelToken, check

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 100
CATEGORY_LIMIT = 10000


def normalize_base_url(base_url: str) -> str:
    """Strip trailing slashes and make sure the URL ends with ``/api``."""
    base_url = base_url.rstrip("/")
    if not base_url.endswith("/api"):
        base_url += "/api"
    return base_url


class YapiClient:
    """Client for one YAPI server and token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: requests.Session | None = None,
    ):
        self.base_url = normalize_base_url(base_url)
        self.token = token
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "YapiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def get_project(self, project_id: int, cancel: CancelToken | None = None) -> RemoteProject:
        return self._fetch(ProjectEnvelope, "/project/get", {"project_id": project_id}, cancel)

    def get_categories(self, project_id: int, cancel: CancelToken | None = None) -> list[RemoteCategory]:
        return self._fetch(
            CategoryMenuEnvelope, "/interface/getCatMenu", {"project_id": project_id}, cancel, empty=list
        )

    def test_connection(self, project_id: int, cancel: CancelToken | None = None) -> None:
        """Raise if the project cannot be fetched with this token."""
        self.get_project(project_id, cancel)

    def get_interfaces(
        self,
        project_id: int,
        categories: list[RemoteCategory] | None = None,
        cancel: CancelToken | None = None,
    ) -> list[RemoteInterface]:
        """Fetch every interface of a project.

        Interfaces are fetched category by category first. If that yields
        nothing, the paginated project-wide list is tried. Pass
        ``categories`` to reuse a category menu already fetched.
        """
        try:
            interfaces = self._interfaces_by_category(project_id, categories, cancel)
        except (ConnectionFailedError, RemoteError, DecodeError) as e:
            logger.warning("yapi.category_strategy_failed", project_id=project_id, error=str(e))
            interfaces = []
        if interfaces:
            return interfaces

        try:
            return self._interfaces_by_page(project_id, cancel)
        except (RemoteError, DecodeError) as e:
            logger.warning("yapi.list_strategy_failed", project_id=project_id, error=str(e))
        raise NoInterfacesError(
            "no interfaces found, please check your YAPI configuration and token permissions"
        )

    def _interfaces_by_category(
        self,
        project_id: int,
        categories: list[RemoteCategory] | None,
        cancel: CancelToken | None,
    ) -> list[RemoteInterface]:
        if categories is None:
            categories = self.get_categories(project_id, cancel)

        interfaces: list[RemoteInterface] = []
        skipped = 0
        for cat in categories:
            try:
                page = self._fetch(
                    InterfacePageEnvelope,
                    "/interface/list_cat",
                    {"catid": cat.id, "page": 1, "limit": CATEGORY_LIMIT},
                    cancel,
                    empty=InterfacePage,
                )
            except (ConnectionFailedError, RemoteError, DecodeError) as e:
                skipped += 1
                logger.warning("yapi.category_skipped", catid=cat.id, name=cat.name, error=str(e))
                continue
            interfaces.extend(page.items)

        logger.info(
            "yapi.interfaces_by_category",
            project_id=project_id,
            categories=len(categories),
            skipped=skipped,
            interfaces=len(interfaces),
        )
        return interfaces

    def _interfaces_by_page(self, project_id: int, cancel: CancelToken | None) -> list[RemoteInterface]:
        interfaces: list[RemoteInterface] = []
        page = 1
        while True:
            data: InterfacePage = self._fetch(
                InterfacePageEnvelope,
                "/interface/get_list",
                {"project_id": project_id, "page": page, "limit": self.page_size},
                cancel,
                empty=InterfacePage,
            )
            interfaces.extend(data.items)
            if not data.items or len(interfaces) >= data.count:
                break
            page += 1

        logger.info("yapi.interfaces_by_page", project_id=project_id, pages=page, interfaces=len(interfaces))
        return interfaces

    def _fetch(
        self,
        envelope_type: type[BaseModel],
        path: str,
        params: dict[str, Any],
        cancel: CancelToken | None,
        empty: Callable[[], Any] | None = None,
    ) -> Any:
        """GET ``path`` and return the decoded ``data`` payload.

        A null ``data`` gives ``empty()``, or a :class:`DecodeError` when no
        ``empty`` factory is passed.
        """
        check(cancel)
        timeout = self.timeout
        if cancel is not None and cancel.remaining() is not None:
            timeout = min(timeout, cancel.remaining())

        url = f"{self.base_url}{path}"
        logger.debug("yapi.request", url=url, params=params)
        try:
            resp = self.session.get(url, params={**params, "token": self.token}, timeout=timeout)
            resp.raise_for_status()
        except requests.Timeout as e:
            raise ConnectionFailedError(f"request to {url} timed out") from e
        except requests.RequestException as e:
            raise ConnectionFailedError(f"failed to fetch {url}: {self._redact(str(e))}") from e
        check(cancel)

        try:
            header = EnvelopeHeader.model_validate_json(resp.content)
        except ValidationError as e:
            raise DecodeError(f"failed to parse response from {path}: {e}") from e

        if header.errcode != 0:
            raise RemoteError(f"YAPI error: {header.errmsg}", errcode=header.errcode)

        try:
            envelope = envelope_type.model_validate(header.model_dump())
        except ValidationError as e:
            raise DecodeError(f"unexpected payload from {path}: {e}") from e
        if envelope.data is None:
            if empty is None:
                raise DecodeError(f"no data in response from {path}")
            return empty()
        return envelope.data

    def _redact(self, text: str) -> str:
        # requests puts the full URL, token included, into its messages
        return text.replace(self.token, "***") if self.token else text
