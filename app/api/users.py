"""User directory - admin managed. Sign-in happens with the external identity provider."""
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import AdminOnly, CurrentUser, get_current_role, parse_object_id
from app.models.role import Role
from app.models.user import User, UserCreate, UserInDB, UserRole, UserUpdate

router = APIRouter()


def _user_out(u: User) -> UserInDB:
    return UserInDB(
        id=str(u.id),
        email=u.email,
        role=u.role,
        full_name=u.full_name,
        nickname=u.nickname,
        is_active=u.is_active,
    )


@router.get("/me")
async def get_me(user: CurrentUser):
    return _user_out(user)


@router.get("/me/permissions")
async def get_my_permissions(user: CurrentUser, role: Annotated[Role | None, Depends(get_current_role)]):
    """The caller's module matrix, so clients can hide what they may not use."""
    if role is None or not role.is_active:
        return {"role": user.role, "permissions": []}
    return {"role": user.role, "permissions": role.matrix()}


@router.get("/")
async def list_users(admin: AdminOnly, role: Optional[UserRole] = None):
    query = {"role": role.value} if role else {}
    users = await User.find(query).sort("full_name").to_list()
    return [_user_out(u) for u in users]


@router.post("/", status_code=201)
async def create_user(data: UserCreate, admin: AdminOnly):
    existing = await User.find_one(User.email == data.email)
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    u = User(**data.model_dump())
    await u.insert()
    return _user_out(u)


@router.patch("/{user_id}")
async def update_user(user_id: str, data: UserUpdate, admin: AdminOnly):
    u = await User.get(parse_object_id(user_id, "user id"))
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    if str(u.id) == str(admin.id) and data.is_active is False:
        raise HTTPException(status_code=400, detail="You cannot deactivate yourself")
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(u, key, value)
    u.updated_at = datetime.utcnow()
    await u.save()
    return _user_out(u)
