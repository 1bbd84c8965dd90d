"""Project Store contract.

The reconciler and the documentation generators only depend on this
protocol. Identifiers are opaque strings; ``create_*`` assigns one when the
entity has none. Backends raise :class:`~apihub.errors.StorageError` for
persistence failures and :class:`~apihub.errors.NotFoundError` when updating
an unknown id.
"""

from typing import Protocol

from apihub.model.local import Collection, Endpoint, Project


class ProjectStore(Protocol):
    def get_project(self, project_id: str) -> Project | None: ...

    def get_collections_by_project(self, project_id: str) -> list[Collection]: ...

    def get_collection(self, collection_id: str) -> Collection | None: ...

    def create_collection(self, collection: Collection) -> Collection: ...

    def update_collection(self, collection: Collection) -> Collection: ...

    def get_endpoints_by_collection(self, collection_id: str) -> list[Endpoint]: ...

    def get_endpoint(self, endpoint_id: str) -> Endpoint | None: ...

    def create_endpoint(self, endpoint: Endpoint) -> Endpoint: ...

    def update_endpoint(self, endpoint: Endpoint) -> Endpoint: ...
