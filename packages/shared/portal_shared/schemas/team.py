from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict

from .common import DocumentModel


class TeamMemberBase(DocumentModel):
    name: str
    role: str
    email: str
    avatar: str = ""


class TeamMemberCreate(TeamMemberBase):
    pass


class TeamMemberUpdate(DocumentModel):
    name: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class TeamMember(TeamMemberBase):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
