"""YAPI -> local project reconciliation.

One sync pass fetches the remote category menu and interfaces, then upserts
them into the Project Store:

- a category matches a local collection of the same name in the project;
- an interface matches an endpoint with the same name and method in the
  collection its category maps to.

There is no persisted remote-id mapping, so a rename on the YAPI side shows
up locally as a new collection or endpoint.
"""

from typing import Callable

import structlog
from pydantic import BaseModel

from apihub.errors import InvalidConfigError, NotFoundError, StorageError
from apihub.model.local import Collection, Endpoint, SyncConfig, SyncStats
from apihub.model.remote import RemoteCategory, RemoteInterface, RemoteProject
from apihub.store.base import ProjectStore
from apihub.sync.cancel import CancelToken, check
from apihub.yapi.client import DEFAULT_PAGE_SIZE, DEFAULT_TIMEOUT, YapiClient
from apihub.yapi.convert import convert_interface

logger = structlog.get_logger()

SYNC_DESCRIPTION = "Synced from YAPI"

# Endpoint fields owned by YAPI; everything else survives an update.
SYNCED_ENDPOINT_FIELDS = (
    "name",
    "method",
    "url",
    "headers",
    "description",
    "request_params",
    "request_body",
    "response_params",
    "response_body",
)


class ConnectionReport(BaseModel):
    project: RemoteProject
    total_categories: int
    total_interfaces: int


def validate_connection_config(config: SyncConfig) -> None:
    """Check the fields needed to talk to YAPI."""
    if not config.yapi_url:
        raise InvalidConfigError("yapi_url is required")
    if not config.yapi_token:
        raise InvalidConfigError("yapi_token is required")
    if not config.yapi_project_id:
        raise InvalidConfigError("yapi_project_id is required")


def validate_sync_config(config: SyncConfig) -> None:
    if not config.project_id:
        raise InvalidConfigError("project_id is required")
    validate_connection_config(config)


class Reconciler:
    """Syncs YAPI projects into a Project Store."""

    def __init__(
        self,
        store: ProjectStore,
        client_factory: Callable[[SyncConfig], YapiClient] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.store = store
        self.client_factory = client_factory
        self.timeout = timeout
        self.page_size = page_size

    def _make_client(self, config: SyncConfig) -> YapiClient:
        if self.client_factory is not None:
            return self.client_factory(config)
        return YapiClient(
            config.yapi_url, config.yapi_token, timeout=self.timeout, page_size=self.page_size
        )

    def test_connection(self, config: SyncConfig, cancel: CancelToken | None = None) -> ConnectionReport:
        """Check that the token can read the project, its categories and interfaces."""
        validate_connection_config(config)
        client = self._make_client(config)
        try:
            project = client.get_project(config.yapi_project_id, cancel)
            categories = client.get_categories(config.yapi_project_id, cancel)
            interfaces = client.get_interfaces(config.yapi_project_id, categories=categories, cancel=cancel)
        finally:
            client.close()
        return ConnectionReport(
            project=project,
            total_categories=len(categories),
            total_interfaces=len(interfaces),
        )

    def sync(self, config: SyncConfig, cancel: CancelToken | None = None) -> SyncStats:
        """Run one sync pass.

        Config, connection and fetch errors are raised before anything is
        written. Storage failures on single items are counted in the stats
        and do not stop the pass. Cancellation raises CancelledError and
        leaves already-applied upserts in place.
        """
        validate_sync_config(config)
        log = logger.bind(project_id=config.project_id, yapi_project_id=config.yapi_project_id)

        check(cancel)
        if self.store.get_project(config.project_id) is None:
            raise NotFoundError(f"project {config.project_id} not found")

        client = self._make_client(config)
        try:
            client.test_connection(config.yapi_project_id, cancel)
            categories = client.get_categories(config.yapi_project_id, cancel)
            interfaces = client.get_interfaces(config.yapi_project_id, categories=categories, cancel=cancel)
        finally:
            client.close()
        log.info("sync.fetched", categories=len(categories), interfaces=len(interfaces))

        stats = SyncStats()
        collection_ids: dict[int, str] = {}
        for cat in categories:
            collection_id = self._upsert_collection(config.project_id, cat, stats, cancel)
            if collection_id is not None:
                collection_ids[cat.id] = collection_id

        for remote in interfaces:
            collection_id = collection_ids.get(remote.catid)
            if collection_id is None:
                stats.skipped_endpoints += 1
                log.debug("sync.endpoint_skipped", interface_id=remote.id, catid=remote.catid)
                continue
            self._upsert_endpoint(collection_id, remote, stats, cancel)

        log.info("sync.completed", **stats.model_dump())
        return stats

    def _upsert_collection(
        self,
        project_id: str,
        cat: RemoteCategory,
        stats: SyncStats,
        cancel: CancelToken | None,
    ) -> str | None:
        """Create or update the collection for ``cat``; returns its id, or None on failure."""
        try:
            check(cancel)
            existing = next(
                (c for c in self.store.get_collections_by_project(project_id) if c.name == cat.name),
                None,
            )
            check(cancel)
            if existing is not None:
                existing.description = SYNC_DESCRIPTION
                existing.sort_order = cat.index
                saved = self.store.update_collection(existing)
                stats.updated_collections += 1
            else:
                saved = self.store.create_collection(
                    Collection(
                        project_id=project_id,
                        name=cat.name,
                        description=SYNC_DESCRIPTION,
                        sort_order=cat.index,
                    )
                )
                stats.created_collections += 1
        except (StorageError, NotFoundError) as e:
            stats.failed_collections += 1
            logger.warning("sync.collection_failed", catid=cat.id, name=cat.name, error=str(e))
            return None
        return saved.id

    def _upsert_endpoint(
        self,
        collection_id: str,
        remote: RemoteInterface,
        stats: SyncStats,
        cancel: CancelToken | None,
    ) -> None:
        endpoint = convert_interface(remote)
        endpoint.collection_id = collection_id
        try:
            check(cancel)
            existing = _find_endpoint(
                self.store.get_endpoints_by_collection(collection_id), endpoint.name, endpoint.method
            )
            check(cancel)
            if existing is not None:
                update = {field: getattr(endpoint, field) for field in SYNCED_ENDPOINT_FIELDS}
                self.store.update_endpoint(existing.model_copy(update=update))
                stats.updated_endpoints += 1
            else:
                self.store.create_endpoint(endpoint)
                stats.created_endpoints += 1
        except (StorageError, NotFoundError) as e:
            stats.failed_endpoints += 1
            logger.warning(
                "sync.endpoint_failed",
                interface_id=remote.id,
                name=endpoint.name,
                method=endpoint.method,
                error=str(e),
            )


def _find_endpoint(endpoints: list[Endpoint], name: str, method: str) -> Endpoint | None:
    for ep in endpoints:
        if ep.name == name and ep.method == method:
            return ep
    return None
