"""In-memory Project Store, optionally persisted to a JSON workspace file."""

import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

import structlog
from pydantic import BaseModel, ValidationError

from apihub.errors import NotFoundError, StorageError
from apihub.model.local import Collection, Endpoint, Environment, Project

logger = structlog.get_logger()


class Workspace(BaseModel):
    """On-disk layout of a saved store."""

    projects: list[Project] = []
    collections: list[Collection] = []
    endpoints: list[Endpoint] = []
    environments: list[Environment] = []


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore:
    """Thread-safe dict-backed store. Returns copies, never live objects."""

    def __init__(self):
        self._projects: dict[str, Project] = {}
        self._collections: dict[str, Collection] = {}
        self._endpoints: dict[str, Endpoint] = {}
        self._environments: dict[str, Environment] = {}
        self._lock = threading.RLock()

    # Persistence

    @classmethod
    def load(cls, path: Path) -> "MemoryStore":
        """Load a workspace file. A missing file gives an empty store."""
        store = cls()
        if not path.exists():
            return store
        try:
            ws = Workspace.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"failed to load workspace {path}: {e}") from e

        store._projects = {p.id: p for p in ws.projects}
        store._collections = {c.id: c for c in ws.collections}
        store._endpoints = {e.id: e for e in ws.endpoints}
        store._environments = {e.id: e for e in ws.environments}
        logger.debug(
            "store.loaded",
            path=str(path),
            projects=len(ws.projects),
            collections=len(ws.collections),
            endpoints=len(ws.endpoints),
            environments=len(ws.environments),
        )
        return store

    def save(self, path: Path) -> None:
        with self._lock:
            ws = Workspace(
                projects=list(self._projects.values()),
                collections=list(self._collections.values()),
                endpoints=list(self._endpoints.values()),
                environments=list(self._environments.values()),
            )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(ws.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"failed to save workspace {path}: {e}") from e

    # Projects

    def create_project(self, project: Project) -> Project:
        with self._lock:
            project = project.model_copy(deep=True)
            project.id = project.id or str(uuid.uuid4())
            project.created_at = project.updated_at = _now()
            self._projects[project.id] = project
            return project.model_copy(deep=True)

    def get_project(self, project_id: str) -> Project | None:
        with self._lock:
            project = self._projects.get(project_id)
            return project.model_copy(deep=True) if project else None

    # Collections

    def get_collections_by_project(self, project_id: str) -> list[Collection]:
        with self._lock:
            found = [c for c in self._collections.values() if c.project_id == project_id]
            found.sort(key=lambda c: c.sort_order)
            return [c.model_copy(deep=True) for c in found]

    def get_collection(self, collection_id: str) -> Collection | None:
        with self._lock:
            collection = self._collections.get(collection_id)
            return collection.model_copy(deep=True) if collection else None

    def create_collection(self, collection: Collection) -> Collection:
        with self._lock:
            collection = collection.model_copy(deep=True)
            collection.id = collection.id or str(uuid.uuid4())
            collection.created_at = collection.updated_at = _now()
            self._collections[collection.id] = collection
            return collection.model_copy(deep=True)

    def update_collection(self, collection: Collection) -> Collection:
        with self._lock:
            existing = self._collections.get(collection.id)
            if existing is None:
                raise NotFoundError(f"collection {collection.id} not found")
            collection = collection.model_copy(deep=True)
            collection.created_at = existing.created_at
            collection.updated_at = _now()
            self._collections[collection.id] = collection
            return collection.model_copy(deep=True)

    def delete_collection(self, collection_id: str) -> None:
        """Delete a collection and its endpoints."""
        with self._lock:
            if self._collections.pop(collection_id, None) is None:
                raise NotFoundError(f"collection {collection_id} not found")
            self._endpoints = {
                k: e for k, e in self._endpoints.items() if e.collection_id != collection_id
            }

    # Endpoints

    def get_endpoints_by_collection(self, collection_id: str) -> list[Endpoint]:
        with self._lock:
            found = [e for e in self._endpoints.values() if e.collection_id == collection_id]
            found.sort(key=lambda e: e.sort_order)
            return [e.model_copy(deep=True) for e in found]

    def get_endpoint(self, endpoint_id: str) -> Endpoint | None:
        with self._lock:
            endpoint = self._endpoints.get(endpoint_id)
            return endpoint.model_copy(deep=True) if endpoint else None

    def create_endpoint(self, endpoint: Endpoint) -> Endpoint:
        with self._lock:
            if endpoint.collection_id not in self._collections:
                raise NotFoundError(f"collection {endpoint.collection_id} not found")
            endpoint = endpoint.model_copy(deep=True)
            endpoint.id = endpoint.id or str(uuid.uuid4())
            endpoint.created_at = endpoint.updated_at = _now()
            self._endpoints[endpoint.id] = endpoint
            return endpoint.model_copy(deep=True)

    def update_endpoint(self, endpoint: Endpoint) -> Endpoint:
        with self._lock:
            existing = self._endpoints.get(endpoint.id)
            if existing is None:
                raise NotFoundError(f"endpoint {endpoint.id} not found")
            endpoint = endpoint.model_copy(deep=True)
            endpoint.created_at = existing.created_at
            endpoint.updated_at = _now()
            self._endpoints[endpoint.id] = endpoint
            return endpoint.model_copy(deep=True)

    def delete_endpoint(self, endpoint_id: str) -> None:
        with self._lock:
            if self._endpoints.pop(endpoint_id, None) is None:
                raise NotFoundError(f"endpoint {endpoint_id} not found")

    # Environments

    def get_environments_by_project(self, project_id: str) -> list[Environment]:
        """Environments of a project, the default one first, then by name."""
        with self._lock:
            found = [e for e in self._environments.values() if e.project_id == project_id]
            found.sort(key=lambda e: (not e.is_default, e.name))
            return [e.model_copy(deep=True) for e in found]

    def get_environment(self, environment_id: str) -> Environment | None:
        with self._lock:
            environment = self._environments.get(environment_id)
            return environment.model_copy(deep=True) if environment else None

    def create_environment(self, environment: Environment) -> Environment:
        with self._lock:
            if environment.project_id not in self._projects:
                raise NotFoundError(f"project {environment.project_id} not found")
            environment = environment.model_copy(deep=True)
            environment.id = environment.id or str(uuid.uuid4())
            environment.created_at = environment.updated_at = _now()
            if environment.is_default:
                self._clear_default(environment.project_id)
            self._environments[environment.id] = environment
            return environment.model_copy(deep=True)

    def update_environment(self, environment: Environment) -> Environment:
        with self._lock:
            existing = self._environments.get(environment.id)
            if existing is None:
                raise NotFoundError(f"environment {environment.id} not found")
            environment = environment.model_copy(deep=True)
            environment.project_id = existing.project_id
            environment.created_at = existing.created_at
            environment.updated_at = _now()
            if environment.is_default:
                self._clear_default(environment.project_id)
            self._environments[environment.id] = environment
            return environment.model_copy(deep=True)

    def delete_environment(self, environment_id: str) -> None:
        with self._lock:
            if self._environments.pop(environment_id, None) is None:
                raise NotFoundError(f"environment {environment_id} not found")

    def _clear_default(self, project_id: str) -> None:
        # at most one default environment per project
        for env in self._environments.values():
            if env.project_id == project_id:
                env.is_default = False
