#!/usr/bin/env python

"""
    Catalog management for Libris: adding, listing, editing and removing
    book records while keeping ISBNs unique and copy counts consistent
    with outstanding loans.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
import re
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from libris.core.auth import AuthContext, require_admin
from libris.core.models import Book
from libris.core.utils import clean_text, unescape_markup
from libris.core.exceptions import (
    ValidationError,
    ConflictError,
    NotFoundError,
    DatabaseInsertError,
)

logger = logging.getLogger(__name__)

ISBN_PATTERN = re.compile(r'^(?=(?:\D*\d){10}(?:(?:\D*\d){3})?$)[\d-]+$')

REQUIRED_FIELDS = {
    'author': 'Author is required.',
    'title': 'Title is required.',
    'publication': 'Publication is required.',
    'physical_description': 'Physical description is required.',
    'isbn': 'ISBN is required.',
    'subject': 'Subject is required.',
    'call_number': 'Call number is required.',
    'accession_number': 'Accession number is required.',
    'location': 'Location is required.',
}

TEXT_FIELDS = tuple(REQUIRED_FIELDS) + ('series',)

SEARCH_FIELDS = ('title', 'author', 'isbn', 'subject', 'call_number')


def _as_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r'\s*-?\d+\s*', value):
        return int(value)
    return None


def validate_book_fields(fields: dict, defaults: Optional[dict] = None) -> dict:
    """Cleans a book payload and checks every field, collecting all
    violations into a single ValidationError. Returns the cleaned values.
    """
    defaults = defaults or {}
    errors = []
    cleaned = {name: clean_text(fields.get(name)) for name in TEXT_FIELDS}

    for name, message in REQUIRED_FIELDS.items():
        if not cleaned[name]:
            errors.append({'field': name, 'message': message})

    if cleaned['isbn'] and not ISBN_PATTERN.match(cleaned['isbn']):
        errors.append({'field': 'isbn', 'message': 'ISBN must be a valid 10 or 13 digit number.'})

    copyright_year = _as_int(fields.get('copyright_year'))
    if copyright_year is None or copyright_year < 0:
        errors.append({'field': 'copyright_year', 'message': 'Copyright year must be a positive number.'})
    cleaned['copyright_year'] = copyright_year

    for name, minimum in (('total_copies', 1), ('available_copies', 0)):
        raw = fields.get(name)
        if raw is None or raw == '':
            cleaned[name] = defaults.get(name)
            continue
        value = _as_int(raw)
        if value is None or value < minimum:
            label = name.replace('_', ' ').capitalize()
            errors.append({'field': name, 'message': f'{label} must be a whole number of at least {minimum}.'})
        cleaned[name] = value

    if errors:
        raise ValidationError(errors)
    return cleaned


class Catalog:

    @classmethod
    def add_book(cls, session: Session, ctx: AuthContext, fields: dict,
                 allow_duplicate_isbn: bool = False) -> Book:
        require_admin(ctx)
        values = validate_book_fields(fields, defaults={'total_copies': 1})
        values.pop('available_copies', None)

        if not allow_duplicate_isbn and Book.with_isbn(session, values['isbn']):
            raise ConflictError("A book with this ISBN already exists.", field='isbn')

        book = Book(**values, available_copies=values['total_copies'])
        try:
            session.add(book)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Failed to add book with ISBN {values['isbn']}")
            raise DatabaseInsertError(f"Failed to add book: {e}")
        session.refresh(book)
        logger.info(f"Book {book.id} ({book.isbn}) added by user {ctx.id}")
        return book

    @classmethod
    def list_books(cls, session: Session, search: Optional[str] = None) -> list:
        """All books ordered by title, text fields decoded to plain text."""
        query = session.query(Book)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(*(
                getattr(Book, name).ilike(pattern) for name in SEARCH_FIELDS
            )))
        books = []
        for book in query.order_by(Book.title, Book.id).all():
            record = book.to_dict()
            for name in TEXT_FIELDS:
                record[name] = unescape_markup(record[name])
            books.append(record)
        return books

    @classmethod
    def get_book(cls, session: Session, book_id: int) -> Book:
        if book := Book.get(session, book_id):
            return book
        raise NotFoundError("Book not found.")

    @classmethod
    def edit_book(cls, session: Session, ctx: AuthContext, book_id: int, fields: dict,
                  allow_duplicate_isbn: bool = False) -> Book:
        """Replaces a book's fields. Omitted counts keep the stored total,
        and the available count then follows from the loans still out.
        Copy counts must satisfy `available == total - active loans`.
        """
        require_admin(ctx)
        values = validate_book_fields(fields)

        book = session.query(Book).filter(Book.id == book_id).with_for_update().first()
        if not book:
            session.rollback()
            raise NotFoundError("Book not found.")

        try:
            borrowed = book.active_loan_count(session)
            if values['total_copies'] is None:
                values['total_copies'] = book.total_copies
            total = values['total_copies']
            if values['available_copies'] is None:
                values['available_copies'] = max(total - borrowed, 0)
            available = values['available_copies']

            if available > total:
                raise ValidationError.single(
                    'available_copies', 'Available copies cannot exceed total copies.')
            if total < borrowed:
                raise ValidationError.single(
                    'total_copies',
                    f'Cannot set total copies below {borrowed}. '
                    f'{borrowed} copies are currently borrowed.'
                )

            expected = total - borrowed
            if available < expected:
                raise ValidationError.single(
                    'available_copies',
                    f'Cannot set available copies below {expected}. '
                    f'{borrowed} copies are currently borrowed.'
                )
            if available > expected:
                raise ValidationError.single(
                    'available_copies',
                    f'Cannot set available copies above {expected}. '
                    f'{borrowed} copies are currently borrowed.'
                )

            if not allow_duplicate_isbn and Book.with_isbn(session, values['isbn'], exclude_id=book.id):
                raise ConflictError("A book with this ISBN already exists.", field='isbn')
        except (ValidationError, ConflictError):
            session.rollback()
            raise

        for name, value in values.items():
            setattr(book, name, value)
        try:
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Failed to update book {book_id}")
            raise DatabaseInsertError(f"Failed to update book: {e}")
        session.refresh(book)
        logger.info(f"Book {book.id} updated by user {ctx.id}")
        return book

    @classmethod
    def delete_book(cls, session: Session, ctx: AuthContext, book_id: int) -> dict:
        """Deletes a book that no active loan references and returns
        the deleted record.
        """
        require_admin(ctx)
        book = session.query(Book).filter(Book.id == book_id).with_for_update().first()
        if book and book.active_loan_count(session):
            session.rollback()
            raise ConflictError("Cannot delete book that is currently borrowed.")
        if not book:
            session.rollback()
            raise NotFoundError("Book not found.")

        record = book.to_dict()
        try:
            session.delete(book)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Failed to delete book {book_id}")
            raise DatabaseInsertError(f"Failed to delete book: {e}")
        logger.info(f"Book {book_id} deleted by user {ctx.id}")
        return record
