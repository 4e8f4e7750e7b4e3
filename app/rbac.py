"""RBAC module/action registry and defaults."""
from __future__ import annotations

from typing import Literal

PermissionAction = Literal["view", "add", "edit", "delete"]

ACTION_BY_METHOD: dict[str, PermissionAction] = {
    "GET": "view",
    "HEAD": "view",
    "OPTIONS": "view",
    "POST": "add",
    "PUT": "edit",
    "PATCH": "edit",
    "DELETE": "delete",
}

SYSTEM_MODULES: list[dict[str, str]] = [
    {"key": "dashboard", "name": "Dashboard"},
    {"key": "academics", "name": "Academic Years & Terms"},
    {"key": "classes", "name": "Classes"},
    {"key": "courses", "name": "Courses"},
    {"key": "schedule", "name": "Schedule"},
    {"key": "attendance", "name": "Attendance"},
    {"key": "assignments", "name": "Assignments"},
    {"key": "quizzes", "name": "Quizzes"},
    {"key": "grades", "name": "Grades"},
    {"key": "homeroom", "name": "Homeroom"},
    {"key": "users", "name": "Users"},
    {"key": "roles_permissions", "name": "Roles & Permissions"},
]


def _full_permissions() -> dict[str, bool]:
    return {"view": True, "add": True, "edit": True, "delete": True}


def _view_only() -> dict[str, bool]:
    return {"view": True, "add": False, "edit": False, "delete": False}


def _module_defaults(fill: dict[str, bool]) -> dict[str, dict[str, bool]]:
    return {module["key"]: dict(fill) for module in SYSTEM_MODULES}


DEFAULT_ROLE_PERMISSIONS: dict[str, dict[str, dict[str, bool]]] = {
    "admin": _module_defaults(_full_permissions()),
    "teacher": {
        **_module_defaults({"view": False, "add": False, "edit": False, "delete": False}),
        "dashboard": _view_only(),
        "academics": _view_only(),
        "classes": _view_only(),
        "courses": {"view": True, "add": True, "edit": True, "delete": False},
        "schedule": {"view": True, "add": False, "edit": True, "delete": False},
        "attendance": {"view": True, "add": True, "edit": True, "delete": True},
        "assignments": _full_permissions(),
        "quizzes": _full_permissions(),
        "grades": _view_only(),
        "homeroom": _view_only(),
        "users": _view_only(),
    },
    "student": {
        **_module_defaults({"view": False, "add": False, "edit": False, "delete": False}),
        "dashboard": _view_only(),
        "courses": _view_only(),
        "schedule": _view_only(),
        # students hand in work through the assignments module
        "assignments": {"view": True, "add": True, "edit": False, "delete": False},
        "grades": _view_only(),
        "users": _view_only(),
    },
}
