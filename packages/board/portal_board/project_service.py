"""
Project service layer: CRUD over the ``projects`` collection.

Each project document embeds its task list. Documents read back are
validated into ``Project`` records, which also normalizes their tasks.
"""

from __future__ import annotations

from typing import Sequence

from portal_shared.schemas.common import ProjectStatus
from portal_shared.schemas.projects import Project, ProjectCreate, ProjectUpdate

from .store import DocumentStore

PROJECTS_COLLECTION = "projects"


def _to_project(doc: dict) -> Project:
    return Project.model_validate(doc)


async def get_all_projects(store: DocumentStore) -> list[Project]:
    """All projects, most recently updated first."""
    docs = await store.list(PROJECTS_COLLECTION, order_by="updatedAt", descending=True)
    return [_to_project(d) for d in docs]


async def get_projects_by_status(store: DocumentStore, status: ProjectStatus) -> list[Project]:
    docs = await store.list(
        PROJECTS_COLLECTION,
        where={"status": ProjectStatus(status).value},
        order_by="updatedAt",
        descending=True,
    )
    return [_to_project(d) for d in docs]


async def get_project_by_id(store: DocumentStore, project_id: str) -> Project | None:
    doc = await store.get(PROJECTS_COLLECTION, project_id)
    return _to_project(doc) if doc else None


async def add_project(store: DocumentStore, project_in: ProjectCreate) -> Project:
    doc_id = await store.add(PROJECTS_COLLECTION, project_in.to_document())
    doc = await store.get(PROJECTS_COLLECTION, doc_id)
    return _to_project(doc)


async def batch_add_projects(store: DocumentStore, projects: Sequence[ProjectCreate]) -> list[str]:
    """Insert many projects at once (CSV import). Returns the new ids."""
    return await store.batch_add(PROJECTS_COLLECTION, [p.to_document() for p in projects])


async def update_project(store: DocumentStore, project_id: str, project_in: ProjectUpdate) -> None:
    await store.update(PROJECTS_COLLECTION, project_id, project_in.changes())


async def save_project(store: DocumentStore, project: Project) -> None:
    """Overwrite every field of an existing project document with ``project``."""
    await store.update(PROJECTS_COLLECTION, project.id, project.to_document())


async def delete_project(store: DocumentStore, project_id: str) -> None:
    await store.delete(PROJECTS_COLLECTION, project_id)
