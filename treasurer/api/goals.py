from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_privileged
from ..models.models import Goal, Member, Payment
from ..schemas.schemas import GoalCreate, GoalRead, GoalUpdate, MessageResponse
from ..services.dashboard import goal_progress, goals_with_progress

router = APIRouter()


def _get_goal(db: Session, goal_id: int) -> Goal:
    goal = db.get(Goal, goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


def _goal_read(db: Session, goal: Goal) -> GoalRead:
    raised = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(Payment.goal_id == goal.id).scalar()
    raised_amount = Decimal(str(raised))
    return GoalRead(
        id=goal.id,
        title=goal.title,
        target_amount=goal.target_amount,
        deadline=goal.deadline,
        description=goal.description,
        raised=raised_amount,
        progress=goal_progress(raised_amount, goal.target_amount),
    )


@router.get("", response_model=List[GoalRead])
def list_goals(
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> List[GoalRead]:
    return [GoalRead(**goal) for goal in goals_with_progress(db)]


@router.post("", response_model=GoalRead)
def create_goal(
    payload: GoalCreate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> GoalRead:
    goal = Goal(**payload.model_dump())
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return _goal_read(db, goal)


@router.put("/{goal_id}", response_model=GoalRead)
def update_goal(
    goal_id: int,
    payload: GoalUpdate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> GoalRead:
    goal = _get_goal(db, goal_id)
    for field, value in payload.model_dump().items():
        setattr(goal, field, value)
    db.commit()
    db.refresh(goal)
    return _goal_read(db, goal)


@router.delete("/{goal_id}", response_model=MessageResponse)
def delete_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> MessageResponse:
    goal = _get_goal(db, goal_id)
    for payment in goal.payments:
        payment.goal_id = None
    db.delete(goal)
    db.commit()
    return MessageResponse(ok=True)
