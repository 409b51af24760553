"""
Visitor models for the Library Management data layer.

A ``Visitor`` is a registered library member. Each visitor owns an ordered
borrow history of ``BorrowRecord`` entries; a record is appended when a copy
is borrowed and flips to RETURNED in place when it comes back. Records are
never deleted.

Administrators are not stored here: the single administrator account is a
fixed credential checked by ``library_management.auth``.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Gender(str, Enum):
    """Visitor gender as offered by the registration form."""

    MALE = "MALE"
    FEMALE = "FEMALE"


class Role(str, Enum):
    """Operator role."""

    ADMIN = "ADMIN"
    VISITOR = "VISITOR"


class BorrowStatus(str, Enum):
    """State of a single borrow episode."""

    BORROWED = "BORROWED"
    RETURNED = "RETURNED"

    @classmethod
    def _missing_(cls, value: object) -> "BorrowStatus | None":
        # Older files spell the states BORROW / RETURN
        legacy = {"BORROW": cls.BORROWED, "RETURN": cls.RETURNED}
        if isinstance(value, str):
            return legacy.get(value.upper())
        return None


def _to_local_naive(value: datetime | None) -> datetime | None:
    """Express timestamps as naive local time.

    Epoch integers and offset-carrying ISO strings parse as aware
    datetimes while new records are stamped with ``datetime.now()``;
    keeping everything naive local makes them comparable.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class BorrowRecord(BaseModel):
    """
    One borrow episode of a specific copy by a visitor.

    ``isbn`` and ``copy_id`` point into the Book Store. ``return_time`` is
    unset while the record is BORROWED.
    """

    isbn: str = Field(
        ...,
        description="ISBN of the borrowed title",
    )

    copy_id: str = Field(
        ...,
        alias="copyId",
        description="Id of the borrowed copy",
    )

    status: BorrowStatus = Field(
        default=BorrowStatus.BORROWED,
        description="BORROWED while the copy is out, RETURNED afterwards",
    )

    borrow_time: datetime = Field(
        default_factory=datetime.now,
        alias="borrowTime",
        description="When the copy was borrowed",
    )

    return_time: datetime | None = Field(
        default=None,
        alias="returnTime",
        description="When the copy was returned",
    )

    @field_validator("borrow_time", "return_time")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        """Store timestamps as naive local time."""
        return _to_local_naive(v)

    @property
    def is_active(self) -> bool:
        """Check if the copy is still out."""
        return self.status == BorrowStatus.BORROWED

    def matches(self, isbn: str, copy_id: str) -> bool:
        """Check if the record refers to the given copy."""
        return self.isbn == isbn and self.copy_id == copy_id

    def mark_returned(self, when: datetime | None = None) -> None:
        """
        Close the record.

        Raises:
            ValueError: If the record is already RETURNED
        """
        if not self.is_active:
            raise ValueError(f"Borrow of {self.copy_id} is already returned")

        returned_at = _to_local_naive(when) or datetime.now()
        # Never before the borrow, even if the clock moved backwards
        self.return_time = max(returned_at, self.borrow_time)
        self.status = BorrowStatus.RETURNED

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )


class Visitor(BaseModel):
    """
    A registered library visitor.

    ``visitor_id`` is None until the Visitor Store assigns one on
    insertion; after that it never changes. ``username`` is unique
    (case-sensitive) among living visitors.
    """

    visitor_id: int | None = Field(
        default=None,
        alias="visitorId",
        description="Store-assigned identifier, starting at 1001",
        ge=1,
        examples=[1001, 1002],
    )

    username: str = Field(
        ...,
        description="Login name, unique among visitors",
        examples=["alice"],
    )

    # Stored in clear; encryption is out of scope
    password: str = Field(
        ...,
        description="Login password",
    )

    role: Role = Field(
        default=Role.VISITOR,
        description="Always VISITOR for stored accounts",
    )

    full_name: str = Field(
        default="",
        alias="fullName",
        description="Full name of the visitor",
    )

    gender: Gender = Field(
        default=Gender.FEMALE,
        description="Gender of the visitor",
    )

    age: int = Field(
        default=0,
        description="Age in years",
        ge=0,
    )

    phone: str = Field(
        default="",
        description="Contact phone number",
    )

    address: str = Field(
        default="",
        description="Postal address",
    )

    borrow_records: list[BorrowRecord] = Field(
        default_factory=list,
        alias="bookBorrows",
        description="Borrow history, oldest first",
    )

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        """Administrators are never stored as visitors."""
        if v != Role.VISITOR:
            raise ValueError("Stored accounts must have the VISITOR role")
        return v

    @field_validator("borrow_records", mode="before")
    @classmethod
    def default_borrow_records(cls, v: object) -> object:
        """Treat a null history as empty."""
        return [] if v is None else v

    @property
    def active_records(self) -> list[BorrowRecord]:
        """Records whose copy is still out."""
        return [record for record in self.borrow_records if record.is_active]

    @property
    def active_borrow_count(self) -> int:
        """Number of copies the visitor currently holds."""
        return len(self.active_records)

    @property
    def has_active_borrows(self) -> bool:
        """Check if the visitor still holds any copy."""
        return any(record.is_active for record in self.borrow_records)

    def find_active_record(self, isbn: str, copy_id: str) -> BorrowRecord | None:
        """Return the first BORROWED record for the given copy."""
        for record in self.borrow_records:
            if record.is_active and record.matches(isbn, copy_id):
                return record
        return None

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "visitorId": 1001,
                "username": "alice",
                "password": "pw",
                "role": "VISITOR",
                "fullName": "Alice Liddell",
                "gender": "FEMALE",
                "age": 30,
                "phone": "555-0100",
                "address": "1 Rabbit Hole",
                "bookBorrows": [
                    {
                        "isbn": "I1",
                        "copyId": "I1-2",
                        "status": "BORROWED",
                        "borrowTime": "2024-03-01T10:15:00",
                        "returnTime": None,
                    }
                ],
            }
        },
    )
