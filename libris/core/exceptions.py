#!/usr/bin/env python

"""
    Error taxonomy for Libris. Every domain error knows the HTTP status
    it is surfaced as and renders itself as `{message, ...details}`.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""


class LibrisAPIError(Exception):

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        return {"message": self.message, **self.details}


class ValidationError(LibrisAPIError):
    """Malformed or missing input. Always carries every offending field."""

    status_code = 400
    default_message = "Validation failed."

    def __init__(self, errors, message=None):
        self.errors = list(errors)
        super().__init__(message, errors=self.errors)

    @classmethod
    def single(cls, field, message):
        return cls([{"field": field, "message": message}], message=message)

    @classmethod
    def from_pydantic(cls, errors, aliases=None):
        """Builds the `{field, message}` list from pydantic error dicts,
        mapping aliased locations back to field names when given.
        """
        aliases = aliases or {}
        fields = []
        for error in errors:
            field = str(error["loc"][-1]) if error.get("loc") else "body"
            fields.append({
                "field": aliases.get(field, field),
                "message": error.get("msg", "Invalid value"),
            })
        return cls(fields)


class ConflictError(LibrisAPIError):
    status_code = 409
    default_message = "Conflict with the current state of the resource."


class ForbiddenError(LibrisAPIError):
    status_code = 403
    default_message = "Forbidden."


class NotFoundError(LibrisAPIError):
    status_code = 404
    default_message = "Not found."


class AuthenticationError(LibrisAPIError):
    status_code = 401
    default_message = "Invalid credentials"


class UnavailableError(LibrisAPIError):
    status_code = 400
    default_message = "This book is currently not available for borrowing."


class DuplicateLoanError(LibrisAPIError):
    status_code = 400
    default_message = "You have already borrowed this book."


class LimitExceededError(LibrisAPIError):
    status_code = 400
    default_message = "You have reached the maximum borrowing limit."


class DatabaseInsertError(LibrisAPIError):
    status_code = 500
    default_message = "Failed to write to the database."
