# tests/unit/core/test_unit_models.py - v1
"""Tests for core/models.py - identities and portal item models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from portalsync.core.models import (
    DOCUMENT_KINDS,
    RESOURCE_KINDS,
    AcademicSession,
    DocumentSnapshot,
    FeedItem,
    FeedPage,
    FeeReceipt,
    IdentityKey,
    SessionIdentity,
)


class TestResourceKinds:
    def test_feed_is_only_paginated_kind(self):
        assert "feed" in RESOURCE_KINDS
        assert "feed" not in DOCUMENT_KINDS
        assert set(DOCUMENT_KINDS) | {"feed"} == set(RESOURCE_KINDS)


class TestIdentity:
    def test_for_kind_scopes_session(self):
        session = SessionIdentity(user_id="u1", tenant="t", session_id="s")
        key = session.for_kind("attendance")
        assert key.kind == "attendance"
        assert key.session == session

    def test_identity_is_hashable(self):
        a = IdentityKey(user_id="u", tenant="t", session_id="s", kind="feed")
        b = IdentityKey(user_id="u", tenant="t", session_id="s", kind="feed")
        assert {a: 1}[b] == 1

    def test_identity_is_frozen(self):
        key = IdentityKey(user_id="u", tenant="t", session_id="s", kind="feed")
        with pytest.raises(ValidationError):
            key.user_id = "other"  # type: ignore[misc]

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            IdentityKey(user_id="u", tenant="t", session_id="s", kind="grades")  # type: ignore[arg-type]


class TestFeedItem:
    def test_portal_field_names(self):
        item = FeedItem.model_validate(
            {"itemId": "12", "timeStamp": "1701234567890", "creDate": "03-12-2025"}
        )
        assert item.item_id == "12"
        assert item.timestamp == 1701234567890
        assert item.created_date == "03-12-2025"

    def test_numeric_id_coerced_to_str(self):
        item = FeedItem.model_validate({"itemId": 7})
        assert item.item_id == "7"

    def test_extra_fields_preserved(self):
        item = FeedItem.model_validate({"itemId": "1", "fileUrl": "https://x/y.pdf"})
        dumped = item.model_dump()
        assert dumped["fileUrl"] == "https://x/y.pdf"

    def test_round_trip_by_field_name(self):
        item = FeedItem(item_id="5", timestamp=10, created_date="2025-12-01")
        again = FeedItem.model_validate(item.model_dump())
        assert again == item

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            FeedItem.model_validate({"title": "no id"})


class TestDocumentItems:
    def test_fee_receipt_portal_field_names(self):
        receipt = FeeReceipt.model_validate(
            {
                "receiptNo": 4512,
                "amount": 85000,
                "paidOnStr": "12-07-2025",
                "cycle": "Semester 5",
                "pdfUrl": "https://portal/r/4512.pdf",
            }
        )
        assert receipt.receipt_no == "4512"
        assert receipt.amount == 85000.0
        assert receipt.paid_on == "12-07-2025"
        assert receipt.pdf_url == "https://portal/r/4512.pdf"
        assert receipt.receipt_id is None

    def test_academic_session_numeric_id(self):
        entry = AcademicSession.model_validate(
            {"sessionId": 11, "sessionName": "2025-26", "startDate": "2025-07-01"}
        )
        assert entry.session_id == "11"
        assert entry.session_name == "2025-26"
        assert entry.end_date is None
        assert AcademicSession.model_validate(entry.model_dump()) == entry

    def test_academic_session_requires_id(self):
        with pytest.raises(ValidationError):
            AcademicSession.model_validate({"sessionName": "2025-26"})


class TestSnapshots:
    def test_document_snapshot_empty(self):
        assert DocumentSnapshot().is_empty is True
        assert DocumentSnapshot(items=[{"a": 1}]).is_empty is False

    def test_feed_page_defaults(self):
        page = FeedPage()
        assert page.items == []
        assert page.next_cursor is None
