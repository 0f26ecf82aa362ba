# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

Resource kinds, the identity of one user's view of a resource, and the
typed items each resource kind carries. No module redefines these types;
all imports come from core.models.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# === RESOURCE KINDS ===

ResourceKind = Literal[
    "feed",
    "personal_info",
    "attendance",
    "report_card",
    "subjects",
    "timetable",
    "fee_receipts",
    "sessions",
]

RESOURCE_KINDS: tuple[ResourceKind, ...] = (
    "feed",
    "personal_info",
    "attendance",
    "report_card",
    "subjects",
    "timetable",
    "fee_receipts",
    "sessions",
)

DOCUMENT_KINDS: tuple[ResourceKind, ...] = tuple(
    k for k in RESOURCE_KINDS if k != "feed"
)


# === IDENTITY ===


class SessionIdentity(BaseModel):
    """One signed-in user inside one tenant (institution) and academic session."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    tenant: str
    session_id: str

    def for_kind(self, kind: ResourceKind) -> IdentityKey:
        """Scope this session identity to a single resource kind."""
        return IdentityKey(
            user_id=self.user_id,
            tenant=self.tenant,
            session_id=self.session_id,
            kind=kind,
        )


class IdentityKey(BaseModel):
    """(user, tenant, session, kind): addresses exactly one cache record."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    tenant: str
    session_id: str
    kind: ResourceKind

    @property
    def session(self) -> SessionIdentity:
        return SessionIdentity(
            user_id=self.user_id, tenant=self.tenant, session_id=self.session_id
        )


# === FEED ===


class FeedItem(BaseModel):
    """Single announcement/circular from the paginated feed.

    Unknown fields returned by the portal are preserved as extras so a
    cached item round-trips without loss.
    """

    model_config = ConfigDict(
        extra="allow", populate_by_name=True, coerce_numbers_to_str=True
    )

    item_id: str = Field(validation_alias=AliasChoices("item_id", "itemId"))
    timestamp: int | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "timeStamp")
    )
    created_date: str | None = Field(
        default=None, validation_alias=AliasChoices("created_date", "creDate")
    )
    title: str | None = None


class FeedPage(BaseModel):
    """One page returned by the feed collaborator."""

    items: list[FeedItem] = Field(default_factory=list)
    next_cursor: Any | None = None


# === WHOLE-DOCUMENT ITEMS ===


class AttendanceSubject(BaseModel):
    """Attendance summary row for one subject."""

    name: str | None = None
    code: str | None = None
    teacher: str | None = None
    duration: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    delivered: str | None = None
    attended: str | None = None
    absent: str | None = None
    leaves: str | None = None
    percentage: str | None = None
    total_approved_dl: str | None = None
    total_approved_ml: str | None = None


class SubjectResult(BaseModel):
    """Grade for one subject inside a semester result."""

    serial_no: str = ""
    code: str = ""
    name: str = ""
    credits: str = ""
    grade: str = ""


class SemesterResult(BaseModel):
    """Report-card entry for one semester."""

    semester_name: str = ""
    sgpa: str = ""
    cgpa: str = ""
    subjects: list[SubjectResult] = Field(default_factory=list)


class Subject(BaseModel):
    """Registered subject for the current semester."""

    name: str | None = None
    specialization: str | None = None
    code: str | None = None
    type: str | None = None
    group: str | None = None
    credits: str | None = None
    is_optional: bool = False


class PersonalInfoSection(BaseModel):
    """Named group of personal-info fields (student, father, address...)."""

    section: str
    fields: dict[str, str] = Field(default_factory=dict)
    photo_url: str | None = None


class TimetablePeriod(BaseModel):
    """One period of the weekly timetable."""

    day: str
    ordinal: int = 0
    fields: dict[str, str] = Field(default_factory=dict)


class FeeReceipt(BaseModel):
    """One paid fee receipt."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    receipt_no: str = Field(
        default="", validation_alias=AliasChoices("receipt_no", "receiptNo")
    )
    amount: float = 0.0
    paid_on: str = Field(
        default="", validation_alias=AliasChoices("paid_on", "paidOnStr")
    )
    cycle: str = ""
    semester: str | None = None
    pdf_url: str | None = Field(
        default=None, validation_alias=AliasChoices("pdf_url", "pdfUrl")
    )
    receipt_id: str | None = Field(
        default=None, validation_alias=AliasChoices("receipt_id", "receiptId")
    )


class AcademicSession(BaseModel):
    """An academic session the user can switch to."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    session_id: str = Field(validation_alias=AliasChoices("session_id", "sessionId"))
    session_name: str = Field(
        default="", validation_alias=AliasChoices("session_name", "sessionName")
    )
    start_date: str | None = Field(
        default=None, validation_alias=AliasChoices("start_date", "startDate")
    )
    end_date: str | None = Field(
        default=None, validation_alias=AliasChoices("end_date", "endDate")
    )


class DocumentSnapshot(BaseModel):
    """Complete parsed snapshot of a whole-document resource."""

    items: list[Any] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.items
