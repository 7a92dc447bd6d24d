from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db, scoped_member_id
from ..auth.jwt import get_current_user
from ..models.models import Member
from ..schemas.schemas import DashboardRead, RankingRead
from ..services.dashboard import build_dashboard, payment_ranking
from ..services.settings_store import get_current_balance

router = APIRouter()


@router.get("", response_model=DashboardRead)
def read_dashboard(
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    member_id: Optional[int] = Query(None, alias="memberId"),
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
) -> DashboardRead:
    effective_member_id = scoped_member_id(user, member_id)
    data = build_dashboard(db, year=year, month=month, member_id=effective_member_id)
    if user.is_privileged:
        data["current_balance"] = get_current_balance(db)
        db.commit()
    return DashboardRead(**data)


@router.get("/ranking", response_model=List[RankingRead])
def read_ranking(
    year: Optional[int] = None,
    member_id: Optional[int] = Query(None, alias="memberId"),
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
) -> List[RankingRead]:
    ranking = payment_ranking(db, year=year, member_id=scoped_member_id(user, member_id))
    return [RankingRead(**row) for row in ranking]
