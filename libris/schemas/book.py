#!/usr/bin/env python
"""
    Book Schemas for Libris,
    the admin payload for adding/editing a book and the stored record.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, Union

# Loose types: the catalog collects every field error itself
Scalar = Optional[Union[int, float, str]]


class BookPayload(BaseModel):

    author: Scalar = None
    title: Scalar = None
    publication: Scalar = None
    copyright_year: Scalar = None
    physical_description: Scalar = None
    series: Scalar = None
    isbn: Scalar = None
    subject: Scalar = None
    call_number: Scalar = None
    accession_number: Scalar = None
    location: Scalar = None
    total_copies: Scalar = None
    available_copies: Scalar = None
    allow_duplicate_isbn: bool = Field(False, alias="allowDuplicateIsbn")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "author": "Knuth, Donald E.",
                "title": "The Art of Computer Programming",
                "publication": "Addison-Wesley",
                "copyright_year": 1997,
                "physical_description": "xx, 650 p. ; 25 cm",
                "isbn": "978-0201896831",
                "subject": "Computer programming",
                "call_number": "QA76.6 .K64",
                "accession_number": "ACC-0001",
                "location": "Stacks, 3rd floor",
                "total_copies": 2
            }
        }

    def fields(self) -> dict:
        return self.model_dump(exclude={"allow_duplicate_isbn"})


class Book(BaseModel):
    id: int
    author: str
    title: str
    publication: str
    copyright_year: int
    physical_description: str
    series: Optional[str] = None
    isbn: str
    subject: str
    call_number: str
    accession_number: str
    location: str
    total_copies: int
    available_copies: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
