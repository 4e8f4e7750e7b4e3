"""Roles: a per-module view/add/edit/delete matrix looked up by user role key."""
from __future__ import annotations

from datetime import datetime

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator

from app.rbac import SYSTEM_MODULES, PermissionAction

MODULE_KEYS = {m["key"] for m in SYSTEM_MODULES}


def _check_modules(keys) -> None:
    unknown = sorted(k for k in keys if k not in MODULE_KEYS)
    if unknown:
        raise ValueError(f"Unsupported modules in permissions: {unknown}")


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class PermissionSet(BaseModel):
    view: bool = False
    add: bool = False
    edit: bool = False
    delete: bool = False

    def allows(self, action: PermissionAction | str) -> bool:
        return bool(getattr(self, action, False))


class ModulePermission(PermissionSet):
    """One row of the matrix as the admin screen sends and receives it."""
    module: str

    @field_validator("module")
    @classmethod
    def validate_module(cls, value: str) -> str:
        _check_modules([value])
        return value

    def as_set(self) -> PermissionSet:
        return PermissionSet(view=self.view, add=self.add, edit=self.edit, delete=self.delete)


def rows_to_map(rows: list[ModulePermission]) -> dict[str, PermissionSet]:
    """Matrix rows to the stored ``module -> PermissionSet`` map; later rows win."""
    return {row.module: row.as_set() for row in rows}


class Role(Document):
    """Permission matrix for one user role (admin, teacher, student or custom)."""
    key: Indexed(str, unique=True)
    name: str
    description: str | None = None
    is_active: bool = True
    is_default: bool = False
    permissions: dict[str, PermissionSet] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, value: dict[str, PermissionSet]) -> dict[str, PermissionSet]:
        _check_modules(value.keys())
        return value

    def allows(self, module: str, action: str) -> bool:
        if not self.is_active:
            return False
        permission = self.permissions.get(module)
        return permission is not None and permission.allows(action)

    def matrix(self) -> list[ModulePermission]:
        """Every registered module in registry order, missing ones denied."""
        return [
            ModulePermission(module=key, **self.permissions.get(key, PermissionSet()).model_dump())
            for key in (m["key"] for m in SYSTEM_MODULES)
        ]

    class Settings:
        name = "roles"
        use_state_management = True


class RoleCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    is_active: bool = True
    permissions: list[ModulePermission] = Field(default_factory=list)

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value) if isinstance(value, str) else value

    def permission_map(self) -> dict[str, PermissionSet]:
        return rows_to_map(self.permissions)


class RoleUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None
    permissions: list[ModulePermission] | None = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _clean_text(value) if isinstance(value, str) else value

    def permission_map(self) -> dict[str, PermissionSet] | None:
        """None when the request leaves the matrix alone."""
        if self.permissions is None:
            return None
        return rows_to_map(self.permissions)


class RoleResponse(BaseModel):
    id: str
    key: str
    name: str
    description: str | None = None
    is_active: bool
    is_default: bool
    editable: bool
    permissions: list[ModulePermission]

    @classmethod
    def from_role(cls, role: Role, editable: bool) -> "RoleResponse":
        return cls(
            id=str(role.id),
            key=role.key,
            name=role.name,
            description=role.description,
            is_active=role.is_active,
            is_default=role.is_default,
            editable=editable,
            permissions=role.matrix(),
        )
