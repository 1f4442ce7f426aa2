#!/usr/bin/env python

"""
    Borrowing engine for Libris.

    A loan moves `borrowed -> returned` on return, or `borrowed -> overdue`
    once its due date passes (applied lazily whenever loans are read, or by
    an explicit sweep), and `overdue -> returned`. A book's
    `available_copies` is only ever changed in the same transaction as the
    loan row that explains the change.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
import logging
from typing import Optional
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from libris.configs import LOAN_LIMIT, LOAN_PERIOD_DAYS
from libris.core.auth import AuthContext, require_member, require_admin
from libris.core.models import Book, Borrowing, BorrowingStatus, User, ACTIVE_STATUSES
from libris.core.utils import utcnow
from libris.core.exceptions import (
    LibrisAPIError,
    ValidationError,
    NotFoundError,
    UnavailableError,
    DuplicateLoanError,
    LimitExceededError,
    DatabaseInsertError,
)

logger = logging.getLogger(__name__)

LOAN_PERIOD = datetime.timedelta(days=LOAN_PERIOD_DAYS)


def loan_summary(loan: Borrowing) -> dict:
    summary = {
        "id": loan.id,
        "book_id": loan.book_id,
        "book_title": loan.book.title,
        "book_author": loan.book.author,
        "borrowed_date": loan.borrowed_date,
        "due_date": loan.due_date,
        "status": loan.status.value,
    }
    if loan.returned_date:
        summary["returned_date"] = loan.returned_date
    return summary


def loan_record(loan: Borrowing, status: BorrowingStatus, with_user: bool = False) -> dict:
    record = {
        "id": loan.id,
        "user_id": loan.user_id,
        "book_id": loan.book_id,
        "borrowed_date": loan.borrowed_date,
        "due_date": loan.due_date,
        "returned_date": loan.returned_date,
        "status": status.value,
        "notes": loan.notes,
        "title": loan.book.title,
        "author": loan.book.author,
        "isbn": loan.book.isbn,
    }
    if with_user:
        record["username"] = loan.user.username if loan.user else None
    else:
        record["call_number"] = loan.book.call_number
    return record


class Lending:

    @classmethod
    def borrow(cls, session: Session, ctx: AuthContext, book_id, notes: Optional[str] = None,
               now: Optional[datetime.datetime] = None) -> dict:
        """
        Borrow one copy of a book for the calling member.

        Raises:
            ForbiddenError: caller is a guest.
            ValidationError: no book id given.
            NotFoundError: the book does not exist.
            UnavailableError: no copies left, including when another
                request took the last copy mid-flight.
            DuplicateLoanError: caller already holds this book.
            LimitExceededError: caller already holds LOAN_LIMIT books.
        """
        require_member(ctx, "borrow books")
        if book_id is None or book_id == "":
            raise ValidationError.single("book_id", "Book ID is required.")

        book = Book.get(session, book_id)
        if not book:
            raise NotFoundError("Book not found.")
        if book.available_copies <= 0:
            raise UnavailableError()
        if Borrowing.exists(session, ctx.id, book.id):
            raise DuplicateLoanError()
        if Borrowing.active(session, user_id=ctx.id).count() >= LOAN_LIMIT:
            raise LimitExceededError(
                f"You have reached the maximum borrowing limit of {LOAN_LIMIT} books.")

        return cls._checkout(session, ctx, book, notes or "", now or utcnow())

    @classmethod
    def _checkout(cls, session: Session, ctx: AuthContext, book: Book, notes: str,
                  now: datetime.datetime) -> dict:
        """Decrements availability and records the loan in one transaction.
        The decrement re-checks availability, so the row lock it takes is
        what serializes concurrent borrowers of the last copy. The member's
        row is then locked and the borrowing cap re-checked, which
        serializes one member's concurrent borrows of different books.
        """
        book_id = book.id
        try:
            taken = session.execute(
                update(Book)
                .where(Book.id == book_id, Book.available_copies > 0)
                .values(available_copies=Book.available_copies - 1)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not taken:
                raise UnavailableError()

            session.query(User).filter(User.id == ctx.id).with_for_update().first()
            if Borrowing.active(session, user_id=ctx.id).count() >= LOAN_LIMIT:
                raise LimitExceededError(
                    f"You have reached the maximum borrowing limit of {LOAN_LIMIT} books.")

            loan = Borrowing(
                user_id=ctx.id,
                book_id=book_id,
                borrowed_date=now,
                due_date=now + LOAN_PERIOD,
                status=BorrowingStatus.BORROWED,
                notes=notes,
            )
            session.add(loan)
            session.flush()
            session.commit()
        except LibrisAPIError:
            session.rollback()
            raise
        except IntegrityError as e:
            session.rollback()
            # A duplicate only if the caller now holds an active loan of this book
            if Borrowing.exists(session, ctx.id, book_id):
                raise DuplicateLoanError()
            logger.exception(f"Failed to borrow book {book_id} for user {ctx.id}")
            raise DatabaseInsertError(f"Failed to create loan record: {e}")
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Failed to borrow book {book_id} for user {ctx.id}")
            raise DatabaseInsertError(f"Failed to create loan record: {e}")

        logger.info(f"User {ctx.id} borrowed book {book_id} (loan {loan.id})")
        return loan_summary(loan)

    @classmethod
    def return_book(cls, session: Session, ctx: AuthContext, borrowing_id,
                    now: Optional[datetime.datetime] = None) -> dict:
        """Closes one of the caller's active loans and puts the copy back."""
        require_member(ctx, "return books")
        now = now or utcnow()

        loan = session.query(Borrowing).filter(
            Borrowing.id == borrowing_id,
            Borrowing.user_id == ctx.id,
            Borrowing.status.in_(ACTIVE_STATUSES),
        ).with_for_update().first()
        if not loan:
            session.rollback()
            raise NotFoundError("Borrowing record not found or already returned.")

        book_id = loan.book_id
        try:
            loan.status = BorrowingStatus.RETURNED
            loan.returned_date = now
            session.flush()
            session.execute(
                update(Book)
                .where(Book.id == book_id)
                .values(available_copies=case(
                    (Book.available_copies < Book.total_copies, Book.available_copies + 1),
                    else_=Book.available_copies,
                ))
                .execution_options(synchronize_session=False)
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Failed to return loan {borrowing_id} for user {ctx.id}")
            raise DatabaseInsertError(f"Failed to return loan: {e}")

        logger.info(f"User {ctx.id} returned book {book_id} (loan {loan.id})")
        return loan_summary(loan)

    @classmethod
    def list_user_borrowings(cls, session: Session, ctx: AuthContext,
                             now: Optional[datetime.datetime] = None) -> list:
        """All of the caller's loans, newest first, with overdue applied."""
        require_member(ctx, "view borrowings")
        loans = session.query(Borrowing).options(
            joinedload(Borrowing.book)
        ).filter(
            Borrowing.user_id == ctx.id
        ).order_by(Borrowing.borrowed_date.desc(), Borrowing.id.desc()).all()
        statuses = cls._refresh_overdue(session, loans, now or utcnow())
        return [loan_record(loan, status) for loan, status in zip(loans, statuses)]

    @classmethod
    def list_all_borrowings(cls, session: Session, ctx: AuthContext,
                            now: Optional[datetime.datetime] = None) -> list:
        require_admin(ctx)
        loans = session.query(Borrowing).options(
            joinedload(Borrowing.book), joinedload(Borrowing.user)
        ).order_by(Borrowing.borrowed_date.desc(), Borrowing.id.desc()).all()
        statuses = cls._refresh_overdue(session, loans, now or utcnow())
        return [loan_record(loan, status, with_user=True) for loan, status in zip(loans, statuses)]

    @classmethod
    def _refresh_overdue(cls, session: Session, loans: list, now: datetime.datetime) -> list:
        """Returns the effective status of each loan and tries to persist
        any borrowed -> overdue transitions. Persisting is best effort:
        a failure is logged and the computed statuses are still returned.
        """
        statuses = [
            BorrowingStatus.OVERDUE if loan.is_past_due(now) else loan.status
            for loan in loans
        ]
        overdue_ids = [
            loan.id for loan, status in zip(loans, statuses) if status != loan.status
        ]
        if overdue_ids:
            try:
                cls._mark_overdue(session, now, overdue_ids)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.warning(f"Could not persist overdue status for loans {overdue_ids}: {e}")
        return statuses

    @classmethod
    def _mark_overdue(cls, session: Session, now: datetime.datetime, ids=None) -> int:
        query = update(Borrowing).where(
            Borrowing.status == BorrowingStatus.BORROWED,
            Borrowing.due_date < now,
        )
        if ids is not None:
            query = query.where(Borrowing.id.in_(ids))
        return session.execute(
            query.values(status=BorrowingStatus.OVERDUE)
            .execution_options(synchronize_session=False)
        ).rowcount

    @classmethod
    def sweep_overdue(cls, session: Session, now: Optional[datetime.datetime] = None) -> int:
        """Persists every pending borrowed -> overdue transition at once."""
        try:
            count = cls._mark_overdue(session, now or utcnow())
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Overdue sweep failed")
            raise DatabaseInsertError(f"Failed to mark loans overdue: {e}")
        logger.info(f"Marked {count} loans overdue")
        return count
