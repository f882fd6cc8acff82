from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Valid range is 0001-01-01T00:00:00Z up to, not including, 10000-01-01T00:00:00Z.
MIN_VALID_SECONDS = -62135596800
MAX_VALID_SECONDS = 253402300800

# Ids are stored as signed 64-bit integers.
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


def _parse_rfc3339(value: str) -> datetime:
    """
    Internal helper to parse an RFC 3339 / ISO 8601 string into an aware datetime.
    - A trailing 'Z' is accepted as UTC.
    - A date without a time is promoted to midnight.
    - Naive values are read as UTC.
    """
    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        try:
            d = date.fromisoformat(s)
        except ValueError as e:
            raise ValueError(
                "Invalid timestamp format. Use an RFC 3339 string (e.g., '2024-01-01T00:00:00Z')."
            ) from e
        dt = datetime(d.year, d.month, d.day)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# PUBLIC_INTERFACE
class Timestamp(BaseModel):
    """
    A point in time as whole seconds since the Unix epoch plus nanoseconds.

    Decoding is lenient: any integers are accepted on the wire, and range checks
    happen in ``to_datetime`` so the service can report them as invalid arguments.
    JSON input may also be an RFC 3339 string.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"seconds": 1704067200, "nanos": 0}}
    )

    seconds: int = Field(default=0, description="Seconds since 1970-01-01T00:00:00Z")
    nanos: int = Field(default=0, description="Non-negative fraction of a second in nanoseconds")

    @model_validator(mode="before")
    @classmethod
    def parse_string_or_datetime(cls, value: Any) -> Any:
        """
        Normalize str/datetime input into seconds and nanos.
        """
        if isinstance(value, str):
            value = _parse_rfc3339(value)
        if isinstance(value, datetime):
            return _split(value)
        return value

    def validate_range(self) -> None:
        """Raise ValueError if this timestamp cannot be represented."""
        if self.seconds < MIN_VALID_SECONDS:
            raise ValueError(f"timestamp {self.seconds}s/{self.nanos}ns before 0001-01-01")
        if self.seconds >= MAX_VALID_SECONDS:
            raise ValueError(f"timestamp {self.seconds}s/{self.nanos}ns after 10000-01-01")
        if not 0 <= self.nanos < 1_000_000_000:
            raise ValueError(f"timestamp {self.seconds}s/{self.nanos}ns: nanos not in range [0, 1e9)")

    def to_datetime(self) -> datetime:
        """
        Convert to an aware UTC datetime, truncating to microseconds.

        Raises:
            ValueError: if the timestamp is out of the representable range.
        """
        self.validate_range()
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        """
        Build a Timestamp from a datetime. Naive values are read as UTC.

        Raises:
            ValueError: if the result is out of the representable range.
        """
        ts = cls(**_split(value))
        ts.validate_range()
        return ts


def _split(value: datetime) -> dict:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return {
        "seconds": delta.days * 86400 + delta.seconds,
        "nanos": delta.microseconds * 1000,
    }


# PUBLIC_INTERFACE
class ToDo(BaseModel):
    """
    A ToDo task as carried on the wire.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "description": "",
                "reminder": "2024-01-01T00:00:00Z",
            }
        }
    )

    id: int = Field(default=0, ge=MIN_ID, le=MAX_ID, description="Store-assigned identifier; ignored on create")
    title: str = Field(..., description="Title of the task")
    description: str = Field(default="", description="Optional detailed description")
    reminder: Timestamp = Field(..., description="Reminder date and time")


class CreateRequest(BaseModel):
    api: str = Field(default="", description="API version requested by the client; empty skips the check")
    todo: ToDo = Field(..., description="Task to create")


class CreateResponse(BaseModel):
    api: str = Field(..., description="API version")
    id: int = Field(..., description="Identifier of the created task")


class ReadRequest(BaseModel):
    api: str = Field(default="", description="API version requested by the client; empty skips the check")
    id: int = Field(..., ge=MIN_ID, le=MAX_ID, description="Identifier of the task")


class ReadResponse(BaseModel):
    api: str = Field(..., description="API version")
    todo: ToDo = Field(..., description="Task read by id")


class ReadAllRequest(BaseModel):
    api: str = Field(default="", description="API version requested by the client; empty skips the check")


class ReadAllResponse(BaseModel):
    api: str = Field(..., description="API version")
    todos: List[ToDo] = Field(default_factory=list, description="All tasks")


class UpdateRequest(BaseModel):
    api: str = Field(default="", description="API version requested by the client; empty skips the check")
    todo: ToDo = Field(..., description="Task to update; every field is overwritten")


class UpdateResponse(BaseModel):
    api: str = Field(..., description="API version")
    updated: int = Field(..., description="Number of updated rows")


class DeleteRequest(BaseModel):
    api: str = Field(default="", description="API version requested by the client; empty skips the check")
    id: int = Field(..., ge=MIN_ID, le=MAX_ID, description="Identifier of the task to delete")


class DeleteResponse(BaseModel):
    api: str = Field(..., description="API version")
    deleted: int = Field(..., description="Number of deleted rows")
