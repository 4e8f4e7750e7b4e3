from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from app.models.role import ModulePermission, PermissionSet, RoleCreateRequest, RoleUpdateRequest
from app.rbac import DEFAULT_ROLE_PERMISSIONS, SYSTEM_MODULES
from app.services.roles import (
    default_permissions_for,
    has_permission,
    is_built_in,
    slugify_role_key,
)

MODULE_KEYS = {m["key"] for m in SYSTEM_MODULES}


def test_default_roles_cover_every_module():
    for role_key in DEFAULT_ROLE_PERMISSIONS:
        assert set(default_permissions_for(role_key)) == MODULE_KEYS


def test_student_defaults():
    perms = default_permissions_for("student")
    assert perms["grades"].view
    assert perms["assignments"].add
    assert not perms["attendance"].view
    assert not perms["roles_permissions"].view


def test_teacher_can_edit_schedule_and_take_attendance():
    perms = default_permissions_for("teacher")
    assert perms["schedule"].edit
    assert perms["attendance"].add
    assert not perms["users"].add


def test_unknown_role_gets_nothing():
    assert not any(p.view for p in default_permissions_for("visitor").values())


def test_has_permission_without_role_is_denied():
    assert has_permission(None, "courses", "view") is False


def test_has_permission_asks_the_role():
    role = SimpleNamespace(allows=lambda module, action: (module, action) == ("grades", "view"))
    assert has_permission(role, "grades", "view")
    assert not has_permission(role, "grades", "edit")


def test_slugify_role_key():
    assert slugify_role_key("  Department Head ") == "department_head"
    assert slugify_role_key("!!!") == "role"


def test_permission_inputs_reject_unknown_modules():
    with pytest.raises(ValidationError):
        ModulePermission(module="billing", view=True)


def test_permission_set_allows_named_actions_only():
    perms = PermissionSet(view=True, edit=True)
    assert perms.allows("view") and perms.allows("edit")
    assert not perms.allows("delete")
    assert not perms.allows("approve")


def test_create_request_builds_permission_map():
    request = RoleCreateRequest(
        name="  Department Head ",
        description="   ",
        permissions=[
            ModulePermission(module="courses", view=True, edit=True),
            ModulePermission(module="grades", view=True),
        ],
    )
    assert request.name == "Department Head"
    assert request.description is None
    result = request.permission_map()
    assert result["courses"] == PermissionSet(view=True, edit=True)
    assert result["grades"].allows("view")
    assert "attendance" not in result


def test_update_without_matrix_keeps_permissions():
    assert RoleUpdateRequest(name="Tutor").permission_map() is None
    assert RoleUpdateRequest(permissions=[]).permission_map() == {}


def test_only_shipped_roles_count_as_built_in():
    assert is_built_in("teacher")
    assert not is_built_in("department_head")


def test_quiz_editor_is_for_teachers():
    assert default_permissions_for("teacher")["quizzes"].allows("delete")
    assert not default_permissions_for("student")["quizzes"].allows("view")
