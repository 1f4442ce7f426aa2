from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class BorrowRequest(BaseModel):
    book_id: Optional[int] = None
    notes: Optional[str] = ''


class LoanSummary(BaseModel):
    id: int
    book_id: int
    book_title: str
    book_author: str
    borrowed_date: datetime
    due_date: datetime
    status: str
    returned_date: Optional[datetime] = None


class BorrowingRecord(BaseModel):
    id: int
    user_id: int
    book_id: int
    borrowed_date: datetime
    due_date: datetime
    returned_date: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    title: str
    author: str
    isbn: str
    call_number: Optional[str] = None
    username: Optional[str] = None
