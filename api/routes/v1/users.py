"""
api/routes/v1/users.py -- Administrative user management.

Routes:
  GET    /api/users        -- list all users (public profiles)
  POST   /api/users        -- provision a user with an explicit role
  PATCH  /api/users/{id}   -- change name and/or role
  DELETE /api/users/{id}   -- delete a user, revoke their sessions

Every route is admin-only (router-level dependency). Each successful mutation
is recorded through the audit logger with the acting admin's id.

Guard rails:
  The last remaining admin cannot be demoted, and an admin cannot delete
  their own account. Together these keep at least one admin in the system.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import ErrorDetail, UserCreate, UserPatch, UserResponse
from audit.logger import AuditLogger
from auth.dependencies import require_admin
from auth.exceptions import DuplicateEmail
from auth.models import PublicUser, User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import hash_password

# Auth policy:
# - all /api/users routes: admin only
router = APIRouter(dependencies=[Depends(require_admin)])


def _not_found(user_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code="not_found", message=f"User {user_id} not found.").model_dump(),
    )


def _last_admin() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=ErrorDetail(
            code="conflict",
            message="At least one admin account must remain.",
        ).model_dump(),
    )


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    users: UserStore = request.app.state.user_store
    return [UserResponse.from_public(u) for u in users.list_users()]


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    admin: PublicUser = Depends(require_admin),
) -> UserResponse:
    """Create an account with any role. The admin-side counterpart of /register."""
    users: UserStore = request.app.state.user_store
    if users.get_by_email(body.email) is not None:
        raise DuplicateEmail()
    try:
        user_id = users.create_user(
            User(
                email=body.email,
                name=body.name,
                role=body.role.value,
                password_hash=hash_password(body.password),
            )
        )
    except IntegrityError as exc:
        raise DuplicateEmail() from exc
    created = users.get_public_by_id(user_id)

    audit: AuditLogger = request.app.state.audit
    audit.record(
        admin.id,
        request.method,
        request.url.path,
        "CREATE",
        entity_type="users",
        entity_id=user_id,
        metadata={"email": created.email, "role": created.role},
    )
    return UserResponse.from_public(created)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserPatch,
    admin: PublicUser = Depends(require_admin),
) -> UserResponse:
    """Rename a user or change their role.

    A role change takes effect on the user's next request; existing sessions
    resolve the role from the users table every time.
    """
    users: UserStore = request.app.state.user_store
    current = users.get_public_by_id(user_id)
    if current is None:
        raise _not_found(user_id)

    changes = body.model_dump(exclude_none=True, mode="json")
    if not changes:
        raise HTTPException(
            status_code=422,
            detail=ErrorDetail(
                code="validation_failure",
                message="Provide at least one of: name, role.",
            ).model_dump(),
        )
    if current.role == "admin" and changes.get("role", "admin") != "admin" and users.count_admins() <= 1:
        raise _last_admin()

    users.update_user(user_id, **changes)
    updated = users.get_public_by_id(user_id)

    audit: AuditLogger = request.app.state.audit
    audit.record(
        admin.id,
        request.method,
        request.url.path,
        "UPDATE",
        entity_type="users",
        entity_id=user_id,
        metadata={"changes": changes, "previous_role": current.role},
    )
    return UserResponse.from_public(updated)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: int,
    admin: PublicUser = Depends(require_admin),
) -> Response:
    """Delete a user, revoke every session they hold and anonymize their audit entries."""
    users: UserStore = request.app.state.user_store
    if user_id == admin.id:
        raise HTTPException(
            status_code=409,
            detail=ErrorDetail(code="conflict", message="You cannot delete your own account.").model_dump(),
        )
    target = users.get_public_by_id(user_id)
    if target is None:
        raise _not_found(user_id)

    sessions: SessionStore = request.app.state.session_store
    sessions.delete_user_sessions(user_id)
    users.delete_user(user_id)

    audit: AuditLogger = request.app.state.audit
    audit.forget_user(user_id)
    audit.record(
        admin.id,
        request.method,
        request.url.path,
        "DELETE",
        entity_type="users",
        entity_id=user_id,
        metadata={"email": target.email},
    )
    return Response(status_code=204)
