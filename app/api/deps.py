"""Shared dependencies: JWT verification, role checks, permissions and ownership guards."""
from datetime import date, datetime, timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from bson.errors import InvalidId

from app.config import settings
from app.models.course import Course
from app.models.role import Role
from app.models.school_class import SchoolClass
from app.models.user import User, UserRole
from app.rbac import ACTION_BY_METHOD
from app.services.roles import has_permission
from beanie import PydanticObjectId

security = HTTPBearer(auto_error=False)


def create_access_token(subject: str, role: str) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode = {"sub": subject, "role": role, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by an access token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id: str = payload.get("sub")
    if not user_id or payload.get("type", "access") != "access":
        raise HTTPException(status_code=401, detail="Invalid token")
    return user_id


def parse_object_id(value: str, label: str = "id") -> PydanticObjectId:
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {label}")


def parse_date_param(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format (YYYY-MM-DD)")


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> User:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = decode_access_token(credentials.credentials)
    user = await User.get(parse_object_id(user_id, "token subject"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def require_roles(*allowed: UserRole):
    allowed_values = [role.value for role in allowed]

    async def checker(user: Annotated[User, Depends(get_current_user)]):
        if user.role not in allowed_values:
            raise HTTPException(status_code=403, detail="Unauthorized")
        return user

    return checker


async def get_current_role(user: Annotated[User, Depends(get_current_user)]) -> Role | None:
    return await Role.find_one(Role.key == user.role)


def require_module_permission(module: str):
    async def checker(
        request: Request,
        user: Annotated[User, Depends(get_current_user)],
        role: Annotated[Role | None, Depends(get_current_role)],
    ):
        method = request.method.upper()
        action = ACTION_BY_METHOD.get(method)
        if not action:
            raise HTTPException(status_code=405, detail=f"Unsupported method for permission check: {method}")
        if not has_permission(role, module, action):
            raise HTTPException(status_code=403, detail=f"Missing {module}.{action} permission")
        return user

    return checker


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


async def get_course_or_404(course_id: str) -> Course:
    course = await Course.get_active(parse_object_id(course_id, "course id"))
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def ensure_course_teacher(course: Course, user: User) -> None:
    """Only the course's own teacher (or an admin) may act on it."""
    if is_admin(user):
        return
    if course.teacher_id != str(user.id):
        raise HTTPException(status_code=403, detail="Unauthorized")


async def get_class_or_404(class_id: str) -> SchoolClass:
    school_class = await SchoolClass.get_active(parse_object_id(class_id, "class id"))
    if not school_class:
        raise HTTPException(status_code=404, detail="Class not found")
    return school_class


def ensure_homeroom_teacher(school_class: SchoolClass, user: User) -> None:
    if is_admin(user):
        return
    if school_class.homeroom_teacher_id != str(user.id):
        raise HTTPException(status_code=403, detail="Unauthorized")


# Type aliases for route injection
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminOnly = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
TeacherOrAdmin = Annotated[User, Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))]
StudentOnly = Annotated[User, Depends(require_roles(UserRole.STUDENT))]
