"""
Pydantic models used for request/response validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation.
"""

from pydantic import BaseModel, Field
from typing import Literal, Optional


class UserData(BaseModel):
    """
    Represents the data required to register a new user.
    """
    email: str = Field(..., examples=["alex@example.com"])
    """Login email, unique per user."""
    password: str
    """Plaintext password; hashed before storage."""
    full_name: Optional[str] = Field(None, examples=["Alex Doe"])
    """Name shown to the other party and typed when signing."""


class UserCredentials(BaseModel):
    """
    Represents login credentials for a user.
    """
    email: str
    """The email of the user."""
    password: str
    """The plaintext password provided for authentication."""


class CaseCreationDetails(BaseModel):
    """
    Represents details needed to open a new case.
    """
    title: str
    description: Optional[str] = None
    type: Literal["personal", "workplace", "agreement"] = "personal"


class InviteDetails(BaseModel):
    invite_email: Optional[str] = None
    """Address the invite link is meant for (informational)."""


class ContextDetails(BaseModel):
    """
    A participant's private view of the dispute.
    """
    background_text: Optional[str] = None
    goals_text: Optional[str] = None
    acceptable_outcome_text: Optional[str] = None
    constraints_text: Optional[str] = None
    sensitivity_level: Literal["low", "normal", "high"] = "normal"


class NewMessage(BaseModel):
    """
    Represents a new message posted to a case conversation.
    """
    content: str
    """The text content of the message."""


class ImproveDraftDetails(BaseModel):
    expected_version: Optional[int] = None
    """When set, the improved draft is only saved if the agreement is still at this version."""


class FinalizeDetails(BaseModel):
    """
    Finalization request. `draft_text` freezes exactly the text the caller
    reviewed; otherwise the stored draft is frozen.
    """
    draft_text: Optional[str] = None
    expected_version: Optional[int] = None


class SignatureDetails(BaseModel):
    full_name: str
    """The signer's own name, typed as confirmation."""
