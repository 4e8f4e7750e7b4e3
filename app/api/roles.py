"""Admin screen for roles and their module permission matrix."""
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException

from app.api.deps import AdminOnly, parse_object_id
from app.models.role import Role, RoleCreateRequest, RoleUpdateRequest
from app.models.user import User
from app.rbac import SYSTEM_MODULES
from app.services.roles import (
    can_edit_role,
    default_permissions_for,
    is_built_in,
    role_to_response,
    slugify_role_key,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load(role_id: str) -> Role:
    role = await Role.get(parse_object_id(role_id, "role id"))
    if role is None:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


def _ensure_editable(role: Role) -> None:
    if not can_edit_role(role):
        raise HTTPException(status_code=403, detail="Editing default roles is disabled by system settings")


@router.get("/modules")
async def list_modules(admin: AdminOnly):
    return {"items": SYSTEM_MODULES}


@router.get("/")
async def list_roles(admin: AdminOnly):
    return {"items": [role_to_response(r) for r in await Role.find_all().sort("name").to_list()]}


@router.get("/{role_id}")
async def get_role(role_id: str, admin: AdminOnly):
    return role_to_response(await _load(role_id))


@router.post("/", status_code=201)
async def create_role(data: RoleCreateRequest, admin: AdminOnly):
    key = slugify_role_key(data.name)
    if is_built_in(key) or await Role.find_one(Role.key == key):
        raise HTTPException(status_code=400, detail="Role with same name already exists")

    role = Role(
        key=key,
        name=data.name,
        description=data.description,
        is_active=data.is_active,
        permissions=data.permission_map(),
    )
    await role.insert()
    logger.info(f"Role '{key}' created by {admin.id}")
    return role_to_response(role)


@router.patch("/{role_id}")
async def update_role(role_id: str, data: RoleUpdateRequest, admin: AdminOnly):
    role = await _load(role_id)
    _ensure_editable(role)

    sent = data.model_fields_set
    if data.name:
        role.name = data.name
    if "description" in sent:
        role.description = data.description
    if data.is_active is not None:
        role.is_active = data.is_active
    permissions = data.permission_map()
    if permissions is not None:
        role.permissions = permissions
    role.updated_at = datetime.utcnow()
    await role.save()
    return role_to_response(role)


@router.post("/{role_id}/reset")
async def reset_role(role_id: str, admin: AdminOnly):
    """Put a built-in role's matrix back to the shipped defaults."""
    role = await _load(role_id)
    if not is_built_in(role.key):
        raise HTTPException(status_code=400, detail="Only default roles can be reset")
    _ensure_editable(role)
    role.permissions = default_permissions_for(role.key)
    role.is_active = True
    role.updated_at = datetime.utcnow()
    await role.save()
    logger.info(f"Role '{role.key}' reset to defaults by {admin.id}")
    return role_to_response(role)


@router.delete("/{role_id}", status_code=204)
async def delete_role(role_id: str, admin: AdminOnly):
    role = await _load(role_id)
    if role.is_default:
        raise HTTPException(status_code=400, detail="Default roles cannot be deleted")
    if await User.find_one(User.role == role.key):
        raise HTTPException(status_code=400, detail="Role is still assigned to users")
    await role.delete()
    logger.info(f"Role '{role.key}' deleted by {admin.id}")
    return None
