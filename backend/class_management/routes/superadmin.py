from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import forbid_self_action, require_permission, require_superadmin
from ..permissions import CallerIdentity, Permission
from ..schemas import DemoteRequest, MessageResponse, RoleChangeRequest, SystemStats, UserOut, UserRoleResponse
from ..services import superadmin as superadmin_service
from ..services.users import list_visible_users

router = APIRouter(prefix="/api/superadmin", tags=["Superadmin"])


@router.get("/users/all", response_model=list[UserOut])
def all_users(
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.VIEW_ALL_USERS)),
):
    return list_visible_users(db, caller)


@router.put("/users/{user_id}/role", response_model=UserRoleResponse)
def change_role(
    user_id: int,
    payload: RoleChangeRequest,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_superadmin),
):
    forbid_self_action(caller, user_id, "Cannot change your own role", "Super admins cannot demote themselves")
    user = superadmin_service.change_role(db, user_id, payload.role)
    return UserRoleResponse(message="Role updated successfully", user=UserOut.model_validate(user))


@router.post("/users/{user_id}/promote-admin", response_model=UserRoleResponse)
def promote_admin(
    user_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_superadmin),
):
    forbid_self_action(caller, user_id, "Cannot change your own role", "Super admins cannot demote themselves")
    user = superadmin_service.promote_to_admin(db, user_id)
    return UserRoleResponse(message="User promoted to admin successfully", user=UserOut.model_validate(user))


@router.post("/users/{user_id}/demote", response_model=UserRoleResponse)
def demote(
    user_id: int,
    payload: DemoteRequest | None = None,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_superadmin),
):
    forbid_self_action(caller, user_id, "Cannot demote yourself", "Super admins cannot demote themselves")
    user = superadmin_service.demote_user(db, user_id, payload.role if payload else None)
    return UserRoleResponse(
        message=f"User demoted to {user.role} successfully", user=UserOut.model_validate(user)
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_superadmin),
):
    forbid_self_action(caller, user_id, "Cannot delete yourself", "Super admins cannot delete their own account")
    superadmin_service.remove_user(db, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/system/stats", response_model=SystemStats)
def system_stats(
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_SYSTEM_STATS)),
):
    return superadmin_service.system_stats(db)


@router.get("/admins", response_model=list[UserOut])
def admins(
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_ADMINS)),
):
    return superadmin_service.list_admins(db)
