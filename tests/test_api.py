#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_api
    ~~~~~~~~~~~~~~

    HTTP behaviour of the Libris API: status codes, response bodies and
    the access gate in front of each route.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import datetime
from unittest import mock
from conftest import auth_headers, book_fields
from libris.core.borrowing import Lending
from libris.core.models import Borrowing
from libris.core.utils import utcnow


def add_book(client, admin, **overrides):
    response = client.post("/api/books", json=book_fields(**overrides), headers=auth_headers(admin))
    assert response.status_code == 201, response.text
    return response.json()["book"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_unknown_route(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json()["message"] == "Route /api/nowhere not found"


def test_add_and_fetch_book(client, admin):
    book = add_book(client, admin, total_copies=2)
    assert book["available_copies"] == 2

    response = client.get(f"/api/books/{book['id']}")
    assert response.status_code == 200
    assert response.json()["title"] == "The Dispossessed"

    assert client.get("/api/books/9999").status_code == 404


def test_add_book_validation_lists_fields(client, admin):
    response = client.post("/api/books", json={"title": "Untitled"}, headers=auth_headers(admin))
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed."
    assert {"field": "author", "message": "Author is required."} in body["errors"]
    assert len(body["errors"]) == 9


def test_add_book_duplicate_isbn(client, admin):
    add_book(client, admin, isbn="9780441013593")
    response = client.post("/api/books", json=book_fields(isbn="9780441013593"), headers=auth_headers(admin))
    assert response.status_code == 409
    assert response.json() == {"message": "A book with this ISBN already exists.", "field": "isbn"}

    payload = book_fields(isbn="9780441013593", allowDuplicateIsbn=True)
    response = client.post("/api/books", json=payload, headers=auth_headers(admin))
    assert response.status_code == 201


def test_admin_routes_reject_members_and_guests(client, admin, member):
    book = add_book(client, admin)
    for headers in ({}, auth_headers(member)):
        assert client.post("/api/books", json=book_fields(), headers=headers).status_code == 403
        assert client.put(f"/api/books/{book['id']}", json=book_fields(), headers=headers).status_code == 403
        assert client.delete(f"/api/books/{book['id']}", headers=headers).status_code == 403
        assert client.get("/api/borrowings/all", headers=headers).status_code == 403


def test_forbidden_comes_before_body_validation(client, member):
    response = client.post("/api/books", json={"total_copies": {"nested": True}}, headers=auth_headers(member))
    assert response.status_code == 403
    assert response.json() == {"message": "Admin access required."}


def test_list_books_returns_clean_text(client, admin):
    add_book(client, admin, title="Tom &amp; Jerry")
    response = client.get("/api/books")
    assert response.status_code == 200
    assert [b["title"] for b in response.json()] == ["Tom & Jerry"]


def test_edit_book(client, admin, member):
    book = add_book(client, admin, total_copies=2)
    client.post("/api/borrowings/borrow", json={"book_id": book["id"]}, headers=auth_headers(member))

    payload = book_fields(isbn=book["isbn"], total_copies=2, available_copies=0)
    response = client.put(f"/api/books/{book['id']}", json=payload, headers=auth_headers(admin))
    assert response.status_code == 400
    assert "below 1" in response.json()["message"]

    payload = book_fields(isbn=book["isbn"], total_copies=3, available_copies=2, location="Annex")
    response = client.put(f"/api/books/{book['id']}", json=payload, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["book"]["location"] == "Annex"

    response = client.put("/api/books/9999", json=book_fields(), headers=auth_headers(admin))
    assert response.status_code == 404


def test_delete_book(client, admin, member):
    book = add_book(client, admin)
    client.post("/api/borrowings/borrow", json={"book_id": book["id"]}, headers=auth_headers(member))

    response = client.delete(f"/api/books/{book['id']}", headers=auth_headers(admin))
    assert response.status_code == 409
    assert client.get(f"/api/books/{book['id']}").status_code == 200

    other = add_book(client, admin)
    response = client.delete(f"/api/books/{other['id']}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["book"]["id"] == other["id"]
    assert client.delete(f"/api/books/{other['id']}", headers=auth_headers(admin)).status_code == 404


def test_borrow_and_return_flow(client, admin, make_user):
    book = add_book(client, admin, total_copies=1)
    alice, bob = make_user(), make_user()

    response = client.post("/api/borrowings/borrow", json={"book_id": book["id"], "notes": "thesis"},
                           headers=auth_headers(alice))
    assert response.status_code == 201
    loan = response.json()["borrowing"]
    assert loan["status"] == "borrowed"
    assert loan["book_title"] == "The Dispossessed"

    response = client.post("/api/borrowings/borrow", json={"book_id": book["id"]}, headers=auth_headers(bob))
    assert response.status_code == 400
    assert response.json()["message"] == "This book is currently not available for borrowing."

    response = client.put(f"/api/borrowings/return/{loan['id']}", headers=auth_headers(bob))
    assert response.status_code == 404

    response = client.put(f"/api/borrowings/return/{loan['id']}", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["borrowing"]["returned_date"] is not None
    assert client.get(f"/api/books/{book['id']}").json()["available_copies"] == 1


def test_borrow_errors(client, admin, member):
    assert client.post("/api/borrowings/borrow", json={"book_id": 1}).status_code == 403

    response = client.post("/api/borrowings/borrow", json={}, headers=auth_headers(member))
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "book_id"

    response = client.post("/api/borrowings/borrow", json={"book_id": 424242}, headers=auth_headers(member))
    assert response.status_code == 404

    book = add_book(client, admin, total_copies=2)
    client.post("/api/borrowings/borrow", json={"book_id": book["id"]}, headers=auth_headers(member))
    response = client.post("/api/borrowings/borrow", json={"book_id": book["id"]}, headers=auth_headers(member))
    assert response.status_code == 400
    assert response.json()["message"] == "You have already borrowed this book."


def test_user_borrowings_show_overdue(client, admin, member, session_factory):
    book = add_book(client, admin)
    with session_factory() as session:
        Lending.borrow(session, member, book["id"], now=utcnow() - datetime.timedelta(days=21))

    response = client.get("/api/borrowings/user", headers=auth_headers(member))
    assert response.status_code == 200
    loans = response.json()
    assert [loan["status"] for loan in loans] == ["overdue"]
    assert loans[0]["title"] == "The Dispossessed"

    with session_factory() as session:
        assert session.query(Borrowing).one().status.value == "overdue"

    assert client.get("/api/borrowings/user").status_code == 403


def test_all_borrowings_for_admin(client, admin, member):
    book = add_book(client, admin)
    client.post("/api/borrowings/borrow", json={"book_id": book["id"]}, headers=auth_headers(member))

    response = client.get("/api/borrowings/all", headers=auth_headers(admin))
    assert response.status_code == 200
    assert [loan["username"] for loan in response.json()] == ["reader"]


def test_session_cookie_identifies_caller(client, admin):
    response = client.post("/api/auth/register", json={
        "surname": "Lovelace", "firstname": "Ada", "middleInitial": "K",
        "username": "ada", "password": "Anal7tical!", "displayName": "Ada",
    })
    assert response.status_code == 201
    assert response.json()["user"]["is_admin"] is False

    assert client.post("/api/auth/login", json={"username": "ada", "password": "nope"}).status_code == 401

    response = client.post("/api/auth/login", json={"username": "ada", "password": "Anal7tical!"})
    assert response.status_code == 200
    token = response.json()["token"]

    book = add_book(client, admin)
    response = client.post("/api/borrowings/borrow", json={"book_id": book["id"]},
                           headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 201


def test_register_validation(client):
    response = client.post("/api/auth/register", json={"username": "x"})
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"username", "password", "firstname", "surname", "displayName"} <= fields


def test_unexpected_error_is_generic(client, member):
    with mock.patch.object(Lending, "list_user_borrowings", side_effect=RuntimeError("secret dsn")):
        response = client.get("/api/borrowings/user", headers=auth_headers(member))
    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_guest_identity_from_bad_token(client):
    response = client.get("/api/borrowings/user", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 403
    assert response.json() == {"message": "Only registered members can view borrowings."}


def test_register_reports_password_strength(client):
    response = client.post("/api/auth/register", json={
        "surname": "Hopper", "firstname": "Grace", "username": "grace",
        "password": "lowercase1", "displayName": "Grace",
    })
    assert response.status_code == 400
    assert response.json()["errors"] == [{
        "field": "password",
        "message": "Password must contain at least one uppercase letter, one special character (!@#$%^&*)",
    }]
