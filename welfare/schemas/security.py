from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from welfare.scope import RegionLevel, Role


class RegionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    level: str
    parent_id: int | None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    email: str | None
    role: str
    scope_level: str | None
    is_active: bool
    regions: list[RegionOut]
    project_ids: list[int] = Field(default_factory=list)
    scheme_ids: list[int] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user) -> UserOut:
        out = cls.model_validate(user)
        out.project_ids = sorted(p.id for p in user.projects)
        out.scheme_ids = sorted(s.id for s in user.schemes)
        return out


class RoleAssignmentIn(BaseModel):
    role: Role
    scope_level: RegionLevel | None = None
    region_ids: list[int] = Field(default_factory=list)
    project_ids: list[int] = Field(default_factory=list)
    scheme_ids: list[int] = Field(default_factory=list)
