#!/usr/bin/env python

"""
    API routes for Libris,
    including the catalog, borrowing and account endpoints.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from typing import Optional, List
from fastapi import (
    APIRouter,
    Depends,
    Response,
    status,
)
from sqlalchemy.orm import Session
from libris import __version__ as VERSION
from libris.configs import SESSION_TTL, TESTING
from libris.core.db import get_session
from libris.core.auth import (
    AuthContext, SESSION_COOKIE, admin_identity, requires_member
)
from libris.core.accounts import Accounts
from libris.core.borrowing import Lending
from libris.core.catalog import Catalog
from libris.core.utils import utcnow
from libris.schemas.book import Book, BookPayload
from libris.schemas.borrowing import BorrowRequest, BorrowingRecord, LoanSummary
from libris.schemas.user import LoginRequest, RegisterRequest, UserProfile

router = APIRouter()


@router.get("/health")
async def health():
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "version": VERSION,
    }


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_session)):
    user = Accounts.register(db, payload.model_dump())
    return {
        "message": "Registration successful!",
        "user": UserProfile.model_validate(user),
    }


@router.post("/auth/login")
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_session)):
    result = Accounts.login(db, payload.username, payload.password)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=result["token"],
        max_age=SESSION_TTL,
        httponly=True,
        secure=not TESTING,
        samesite="Lax",
        path="/"
    )
    return {"message": "Login successful", **result}


@router.post("/auth/logout")
async def logout(response: Response):
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/books", response_model=List[Book])
def list_books(search: Optional[str] = None, db: Session = Depends(get_session)):
    return Catalog.list_books(db, search=search)


@router.get("/books/{book_id}", response_model=Book)
def get_book(book_id: int, db: Session = Depends(get_session)):
    return Catalog.get_book(db, book_id)


@router.post("/books", status_code=status.HTTP_201_CREATED)
def add_book(payload: BookPayload, db: Session = Depends(get_session),
             ctx: AuthContext = Depends(admin_identity)):
    book = Catalog.add_book(db, ctx, payload.fields(),
                            allow_duplicate_isbn=payload.allow_duplicate_isbn)
    return {"message": "Book added successfully", "book": Book.model_validate(book)}


@router.put("/books/{book_id}")
def edit_book(book_id: int, payload: BookPayload, db: Session = Depends(get_session),
              ctx: AuthContext = Depends(admin_identity)):
    book = Catalog.edit_book(db, ctx, book_id, payload.fields(),
                             allow_duplicate_isbn=payload.allow_duplicate_isbn)
    return {"message": "Book updated successfully", "book": Book.model_validate(book)}


@router.delete("/books/{book_id}")
def delete_book(book_id: int, db: Session = Depends(get_session),
                ctx: AuthContext = Depends(admin_identity)):
    record = Catalog.delete_book(db, ctx, book_id)
    return {"message": "Book deleted successfully", "book": Book.model_validate(record)}


@router.post("/borrowings/borrow", status_code=status.HTTP_201_CREATED)
def borrow(payload: BorrowRequest, db: Session = Depends(get_session),
           ctx: AuthContext = Depends(requires_member("borrow books"))):
    loan = Lending.borrow(db, ctx, payload.book_id, notes=payload.notes)
    return {"message": "Book borrowed successfully!", "borrowing": LoanSummary(**loan)}


@router.put("/borrowings/return/{borrowing_id}")
def return_book(borrowing_id: int, db: Session = Depends(get_session),
                ctx: AuthContext = Depends(requires_member("return books"))):
    loan = Lending.return_book(db, ctx, borrowing_id)
    return {"message": "Book returned successfully!", "borrowing": LoanSummary(**loan)}


@router.get("/borrowings/user", response_model=List[BorrowingRecord])
def user_borrowings(db: Session = Depends(get_session),
                    ctx: AuthContext = Depends(requires_member("view borrowings"))):
    return Lending.list_user_borrowings(db, ctx)


@router.get("/borrowings/all", response_model=List[BorrowingRecord])
def all_borrowings(db: Session = Depends(get_session), ctx: AuthContext = Depends(admin_identity)):
    return Lending.list_all_borrowings(db, ctx)
