from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from useradmin.db.session import get_db
from useradmin.errors import BadRequestError
from useradmin.schemas.security import AvatarOut, EmailChange, PasswordChange, UserCreate, UserOut, UserPage, UserUpdate
from useradmin.security.context import AuthzContext
from useradmin.security.decorators import require_permissions
from useradmin.security.dependencies import get_authz
from useradmin.security.levels import ensure_level
from useradmin.security.passwords import password_matches
from useradmin.services.data_scope import authorized_dept_ids, resolve_dept_scope
from useradmin.services.departments import DeptService
from useradmin.services.roles import RoleService
from useradmin.services.users import PageRequest, UserQueryCriteria, UserService
from useradmin.services.verification import SCENE_RESET_EMAIL, TYPE_EMAIL, VerificationCodeService
from useradmin.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_service(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> UserService:
    return UserService(db, settings)


def user_criteria(
    id: int | None = None,
    blurry: str | None = None,
    enabled: bool | None = None,
    dept_id: int | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
) -> UserQueryCriteria:
    return UserQueryCriteria(
        id=id,
        blurry=blurry,
        enabled=enabled,
        dept_id=dept_id,
        created_from=created_from,
        created_to=created_to,
    )


def page_request(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=500),
    sort: str = "id,desc",
) -> PageRequest:
    return PageRequest(page=page, size=size, sort=sort)


@router.get("/download")
@require_permissions(["user:list"])
def download(
    criteria: UserQueryCriteria = Depends(user_criteria),
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
) -> StreamingResponse:
    logger.info("Export users operator=%s", authz.username)
    body = users.export_csv(users.query_all(criteria))
    return StreamingResponse(
        iter([body]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=users.csv"},
    )


@router.get("", response_model=UserPage)
@require_permissions(["user:list"])
def list_users(
    criteria: UserQueryCriteria = Depends(user_criteria),
    pageable: PageRequest = Depends(page_request),
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
) -> UserPage:
    logger.info("Query users operator=%s dept_id=%s", authz.username, criteria.dept_id)
    depts = DeptService(db)
    roles = RoleService(db).find_by_users_id(authz.user_id)

    scope = resolve_dept_scope(
        criteria.dept_id,
        authorized_dept_ids(roles, authz.dept_id, depts),
        depts.descendant_ids,
    )
    if not scope.visible:
        return UserPage()

    criteria.dept_ids = set(scope.dept_ids)
    return users.query_page(criteria, pageable)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@require_permissions(["user:add"])
def create_user(
    resources: UserCreate,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
):
    roles = RoleService(db)
    ensure_level(roles.user_level(authz.user_id), roles.level_of_roles(resources.role_ids))
    user = users.create(resources)
    logger.info("Created user operator=%s user=%s", authz.username, user.username)
    return user


@router.put("", status_code=status.HTTP_204_NO_CONTENT)
@require_permissions(["user:edit"])
def update_user(
    resources: UserUpdate,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
) -> Response:
    roles = RoleService(db)
    ensure_level(roles.user_level(authz.user_id), roles.level_of_roles(resources.role_ids))
    users.update(resources)
    logger.info("Updated user operator=%s user_id=%s", authz.username, resources.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{id}")
@require_permissions(["user:del"])
def delete_user(
    id: int,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
) -> None:
    roles = RoleService(db)
    ensure_level(roles.user_level(authz.user_id), roles.user_level(id))
    users.delete(id)
    logger.info("Deleted user operator=%s user_id=%s", authz.username, id)


@router.post("/updatePass")
def update_pass(
    body: PasswordChange,
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
) -> None:
    users.update_pass(authz.username, body.old_pass, body.new_pass)
    logger.info("Password changed user=%s", authz.username)


@router.post("/updateAvatar", response_model=AvatarOut)
def update_avatar(
    file: UploadFile = File(...),
    users: UserService = Depends(get_user_service),
    authz: AuthzContext = Depends(get_authz),
) -> AvatarOut:
    name = users.update_avatar(authz.username, file.filename or "", file.file)
    logger.info("Avatar changed user=%s file=%s", authz.username, name)
    return AvatarOut(avatar=name)


@router.post("/updateEmail/{code}")
def update_email(
    code: str,
    body: EmailChange,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
    authz: AuthzContext = Depends(get_authz),
) -> None:
    user = users.find_by_name(authz.username)
    if not password_matches(body.password, user.password):
        logger.warning("Email change rejected, wrong password user=%s", authz.username)
        raise BadRequestError("Wrong password")

    users.ensure_email_available(body.email, exclude_id=user.id)
    VerificationCodeService(db, settings.verification_code_ttl_minutes).validate(
        code, SCENE_RESET_EMAIL, TYPE_EMAIL, body.email
    )
    users.update_email(authz.username, body.email)
    logger.info("Email changed user=%s", authz.username)
