#!/usr/bin/env python

"""
    Models for Libris,
    including the users, books and borrowings tables.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import enum
from sqlalchemy import (
    Column, String, Boolean, Integer, DateTime, Text, ForeignKey, Index,
    CheckConstraint, text, Enum as SQLAlchemyEnum
)
from sqlalchemy.orm import relationship
from libris.core.db import Base
from libris.core.utils import utcnow


class BorrowingStatus(str, enum.Enum):
    BORROWED = "borrowed"
    OVERDUE = "overdue"
    RETURNED = "returned"


ACTIVE_STATUSES = (BorrowingStatus.BORROWED, BorrowingStatus.OVERDUE)
ACTIVE_LOAN_CLAUSE = "status IN ('borrowed', 'overdue')"


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    surname = Column(String(50), nullable=False)
    firstname = Column(String(50), nullable=False)
    middle_initial = Column(String(1), nullable=True)
    username = Column(String(30), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    borrowings = relationship('Borrowing', back_populates='user', cascade='all, delete-orphan')

    @classmethod
    def exists(cls, session, username):
        return session.query(User).filter(User.username == username).first()


class Book(Base):
    __tablename__ = 'books'
    __table_args__ = (
        CheckConstraint('total_copies >= 1', name='ck_books_total_copies'),
        CheckConstraint(
            'available_copies >= 0 AND available_copies <= total_copies',
            name='ck_books_available_copies'
        ),
    )

    id = Column(Integer, primary_key=True)
    author = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False, index=True)
    publication = Column(String(255), nullable=False)
    copyright_year = Column(Integer, nullable=False)
    physical_description = Column(String(500), nullable=False)
    series = Column(String(255), nullable=True)
    isbn = Column(String(20), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    call_number = Column(String(50), nullable=False)
    accession_number = Column(String(50), nullable=False)
    location = Column(String(100), nullable=False)
    total_copies = Column(Integer, default=1, nullable=False)
    available_copies = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    borrowings = relationship('Borrowing', back_populates='book', cascade='all, delete-orphan')

    @classmethod
    def with_isbn(cls, session, isbn, exclude_id=None):
        query = session.query(Book).filter(Book.isbn == isbn)
        if exclude_id is not None:
            query = query.filter(Book.id != exclude_id)
        return query.first()

    def active_loan_count(self, session):
        return Borrowing.active(session, book_id=self.id).count()

    def to_dict(self):
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


class Borrowing(Base):
    __tablename__ = 'borrowings'
    __table_args__ = (
        # At most one active loan per (user, book) pair
        Index(
            'uq_borrowings_active_loan', 'user_id', 'book_id', unique=True,
            sqlite_where=text(ACTIVE_LOAN_CLAUSE),
            postgresql_where=text(ACTIVE_LOAN_CLAUSE),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey('books.id', ondelete='CASCADE'), nullable=False, index=True)
    borrowed_date = Column(DateTime, default=utcnow, nullable=False)
    due_date = Column(DateTime, nullable=False)
    returned_date = Column(DateTime, nullable=True)
    status = Column(
        SQLAlchemyEnum(
            BorrowingStatus,
            name='borrowing_status',
            values_callable=lambda statuses: [s.value for s in statuses],
            create_constraint=True,
        ),
        default=BorrowingStatus.BORROWED,
        nullable=False
    )
    notes = Column(Text, default='')

    user = relationship('User', back_populates='borrowings')
    book = relationship('Book', back_populates='borrowings')

    @classmethod
    def active(cls, session, user_id=None, book_id=None):
        query = session.query(Borrowing).filter(Borrowing.status.in_(ACTIVE_STATUSES))
        if user_id is not None:
            query = query.filter(Borrowing.user_id == user_id)
        if book_id is not None:
            query = query.filter(Borrowing.book_id == book_id)
        return query

    @classmethod
    def exists(cls, session, user_id, book_id):
        return cls.active(session, user_id=user_id, book_id=book_id).first()

    def is_past_due(self, now):
        return self.status == BorrowingStatus.BORROWED and self.due_date < now


__all__ = ['User', 'Book', 'Borrowing', 'BorrowingStatus', 'ACTIVE_STATUSES']
