"""
Data models for search requests and extracted person records.

Requests and records cross the HTTP boundary, so they are Pydantic models.
Records serialise with camelCase aliases (``zipCode``, ``phoneNumber``) and
omit fields that were never set, so error records only carry
``name``, ``location`` and ``error``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_RESULTS_ERROR = "No results found"


class SearchRequest(BaseModel):
    """One name/location query. Order within a batch is significant."""

    name: str = Field(min_length=1, description="Person's full name")
    location: str = Field(min_length=1, description="City, state or ZIP")

    @field_validator("name", "location")
    @classmethod
    def strip_and_require(cls, v: str) -> str:
        """Reject blank values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class Credentials(BaseModel):
    """Site login credentials. Never logged."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)


class PersonRecord(BaseModel):
    """Result of one search.

    Either the extracted fields or ``error`` is meaningful, never both.
    Extracted fields default to empty strings once extraction ran, so a
    successful record always carries every field.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zipCode")
    county: str | None = None
    birthday: str | None = Field(default=None, description="ISO date (YYYY-MM-DD)")
    emails: str | None = None
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    error: str | None = None

    @classmethod
    def failure(cls, request: SearchRequest, error: str) -> "PersonRecord":
        return cls(name=request.name, location=request.location, error=error)

    @classmethod
    def from_fields(cls, request: SearchRequest, fields: dict[str, str]) -> "PersonRecord":
        return cls(name=request.name, location=request.location, **fields)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_api(self) -> dict:
        """Serialise for JSON responses."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SessionState(str, Enum):
    """Where the browser session stands, inferred fresh from DOM markers on each check."""

    CHALLENGE_PENDING = "challenge_pending"  # Turnstile markers on page
    LOGGED_OUT = "logged_out"
    LOGGED_IN = "logged_in"
    SEARCH_READY = "search_ready"  # Home page loaded, challenge cleared
