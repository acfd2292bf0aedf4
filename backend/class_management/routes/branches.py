from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import BranchCreate, BranchOut, BranchUpdate, MessageResponse
from ..services import branches as branch_service

router = APIRouter(prefix="/api/branches", tags=["Branches"])

can_view = require_permission(Permission.VIEW_BRANCHES)
can_manage = require_permission(Permission.MANAGE_BRANCHES)


@router.get("", response_model=list[BranchOut])
def list_branches(db: Session = Depends(get_db_session), _: CallerIdentity = Depends(can_view)):
    return branch_service.list_branches(db)


@router.get("/school/{school_id}", response_model=list[BranchOut])
def list_school_branches(
    school_id: int,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(can_view),
):
    return branch_service.list_branches(db, school_id=school_id)


@router.get("/{branch_id}", response_model=BranchOut)
def get_branch(branch_id: int, db: Session = Depends(get_db_session), _: CallerIdentity = Depends(can_view)):
    return branch_service.get_branch(db, branch_id)


@router.post("", response_model=BranchOut, status_code=status.HTTP_201_CREATED)
def create_branch(
    payload: BranchCreate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(can_manage),
):
    return branch_service.create_branch(db, **payload.model_dump())


@router.put("/{branch_id}", response_model=BranchOut)
def update_branch(
    branch_id: int,
    payload: BranchUpdate,
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(can_manage),
):
    return branch_service.update_branch(db, branch_id, payload.model_dump(exclude_unset=True))


@router.delete("/{branch_id}", response_model=MessageResponse)
def delete_branch(branch_id: int, db: Session = Depends(get_db_session), _: CallerIdentity = Depends(can_manage)):
    branch_service.delete_branch(db, branch_id)
    return MessageResponse(message="Branch deleted successfully")
