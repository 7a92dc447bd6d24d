from typing import Optional

from fastapi import HTTPException, Response

from ..auth.jwt import get_db
from ..models.models import Member
from ..services.reports import FileReport

__all__ = ["get_db", "scoped_member_id", "ensure_member_access", "file_response"]


def scoped_member_id(user: Member, requested: Optional[int]) -> Optional[int]:
    """Privileged users see whatever they ask for; everyone else sees only themselves."""
    if user.is_privileged:
        return requested
    return user.id


def ensure_member_access(user: Member, member_id: int) -> None:
    if not user.is_privileged and user.id != member_id:
        raise HTTPException(status_code=403, detail="Operation not permitted for your role")


def file_response(report: FileReport) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{report.filename}"',
        "Cache-Control": "no-store",
    }
    return Response(content=report.content, media_type=report.media_type, headers=headers)
