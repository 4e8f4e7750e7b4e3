"""Role lifecycle helpers and permission checks."""
from __future__ import annotations

from datetime import datetime
import logging
import re

from app.config import settings
from app.models.role import PermissionSet, Role, RoleResponse
from app.rbac import DEFAULT_ROLE_PERMISSIONS, SYSTEM_MODULES

logger = logging.getLogger(__name__)


def slugify_role_key(name: str) -> str:
    key = re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")
    return key or "role"


def can_edit_role(role: Role) -> bool:
    if not role.is_default:
        return True
    return settings.allow_edit_default_roles


def role_to_response(role: Role) -> RoleResponse:
    return RoleResponse.from_role(role, editable=can_edit_role(role))


def has_permission(role: Role | None, module: str, action: str) -> bool:
    if not role:
        return False
    return role.allows(module, action)


def default_permissions_for(role_key: str) -> dict[str, PermissionSet]:
    """The built-in matrix for ``role_key``; unknown keys get every module denied."""
    defaults = DEFAULT_ROLE_PERMISSIONS.get(role_key, {})
    return {m["key"]: PermissionSet(**defaults.get(m["key"], {})) for m in SYSTEM_MODULES}


def is_built_in(role_key: str) -> bool:
    return role_key in DEFAULT_ROLE_PERMISSIONS


async def ensure_default_roles() -> None:
    """Create the built-in roles, or backfill modules registered since they were stored."""
    for role_key in DEFAULT_ROLE_PERMISSIONS:
        defaults = default_permissions_for(role_key)
        role = await Role.find_one(Role.key == role_key)

        if role is None:
            await Role(
                key=role_key,
                name=role_key.title(),
                description=f"Default {role_key.title()} role",
                is_default=True,
                permissions=defaults,
            ).insert()
            logger.info(f"Created default role '{role_key}'")
            continue

        missing = [module for module in defaults if module not in role.permissions]
        if missing or not role.is_default:
            role.permissions = {**defaults, **role.permissions}
            role.is_default = True
            role.updated_at = datetime.utcnow()
            await role.save()
            logger.info(f"Role '{role_key}' backfilled with {missing}")
