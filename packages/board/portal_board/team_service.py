"""Team service layer: CRUD over the ``team_members`` collection."""

from __future__ import annotations

from portal_shared.schemas.team import TeamMember, TeamMemberCreate, TeamMemberUpdate

from .store import DocumentStore

TEAM_COLLECTION = "team_members"


async def get_all_team_members(store: DocumentStore) -> list[TeamMember]:
    docs = await store.list(TEAM_COLLECTION, order_by="name")
    return [TeamMember.model_validate(d) for d in docs]


async def get_team_member_by_id(store: DocumentStore, member_id: str) -> TeamMember | None:
    doc = await store.get(TEAM_COLLECTION, member_id)
    return TeamMember.model_validate(doc) if doc else None


async def add_team_member(store: DocumentStore, member_in: TeamMemberCreate) -> TeamMember:
    doc_id = await store.add(TEAM_COLLECTION, member_in.to_document())
    return TeamMember(id=doc_id, **member_in.model_dump())


async def update_team_member(store: DocumentStore, member_id: str, member_in: TeamMemberUpdate) -> None:
    await store.update(TEAM_COLLECTION, member_id, member_in.changes())


async def delete_team_member(store: DocumentStore, member_id: str) -> None:
    await store.delete(TEAM_COLLECTION, member_id)
