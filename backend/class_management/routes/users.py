from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import forbid_self_action, require_permission, require_student
from ..permissions import CallerIdentity, Permission
from ..schemas import MessageResponse, UserCreateRequest, UserOut, UserUpdateRequest
from ..services import users as user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.VIEW_USERS)),
):
    return user_service.list_visible_users(db, caller)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_student),
):
    return user_service.get_user(db, caller, user_id)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.CREATE_USERS)),
):
    return user_service.create_user(db, caller, **payload.model_dump())


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_student),
):
    return user_service.update_user(db, caller, user_id, payload.model_dump(exclude_unset=True))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db_session),
    caller: CallerIdentity = Depends(require_permission(Permission.DELETE_USERS)),
):
    forbid_self_action(caller, user_id, "Cannot delete yourself", "You cannot delete your own account")
    user_service.delete_user(db, caller, user_id)
    return MessageResponse(message="User deleted successfully")
