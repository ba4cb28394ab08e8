from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.db.models import LoanStatus
from app.schemas.book import BookRead
from app.schemas.common import CamelModel, InputModel, UtcDatetime
from app.schemas.user import UserSummary


class LoanCreate(InputModel):
    book_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    due_date: datetime


class LoanRead(CamelModel):
    id: str
    loan_date: UtcDatetime
    due_date: UtcDatetime
    return_date: Optional[UtcDatetime] = None
    status: LoanStatus
    user_id: str
    book_id: str
    created_at: UtcDatetime

    # Datos poblados; None si la referencia quedó colgando
    book: Optional[BookRead] = None
    user: Optional[UserSummary] = None


class LoanResponse(CamelModel):
    success: bool = True
    loan: LoanRead


class LoanListResponse(CamelModel):
    success: bool = True
    loans: List[LoanRead]


class OverdueJobResponse(CamelModel):
    success: bool = True
    updated: int
