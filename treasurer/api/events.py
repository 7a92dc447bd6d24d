from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_privileged
from ..models.models import Event, Member
from ..schemas.schemas import EventCreate, EventRead, EventSummaryRead, EventUpdate, MessageResponse

router = APIRouter()


def _get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _apply(event: Event, payload: EventCreate) -> None:
    for field, value in payload.model_dump().items():
        setattr(event, field, value)


@router.get("", response_model=List[EventRead])
def list_events(
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> List[Event]:
    return db.query(Event).order_by(Event.event_date.desc(), Event.id.desc()).all()


@router.get("/summary", response_model=List[EventSummaryRead])
def events_summary(
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> List[EventSummaryRead]:
    events = db.query(Event).order_by(Event.event_date.desc(), Event.id.desc()).all()
    return [
        EventSummaryRead(
            name=event.name,
            date=event.event_date,
            raised=event.raised_amount,
            spent=event.spent_amount,
            balance=event.net_amount,
        )
        for event in events
    ]


@router.post("", response_model=EventRead)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Event:
    event = Event()
    _apply(event, payload)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@router.put("/{event_id}", response_model=EventRead)
def update_event(
    event_id: int,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Event:
    event = _get_event(db, event_id)
    _apply(event, payload)
    db.commit()
    db.refresh(event)
    return event


@router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> MessageResponse:
    event = _get_event(db, event_id)
    # Expenses outlive the event they were booked against.
    for expense in event.expenses:
        expense.event_id = None
    db.delete(event)
    db.commit()
    return MessageResponse(ok=True)
