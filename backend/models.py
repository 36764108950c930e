from __future__ import annotations

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

# Keys the client uses to switch between draft tones.
EMAIL_TONES = ("better-terms", "discount", "take-charge", "rampage")


class RedFlag(BaseModel):
    """One potential issue found in the lease."""

    issue: str = Field(description="A concise title for the potential issue or red flag found in the lease.")
    clause: Optional[str] = Field(
        default=None,
        description="The specific clause or section number from the lease related to this issue, if identifiable.",
    )
    explanation: str = Field(
        description="A detailed explanation of why this is a potential red flag and its implications for the renter."
    )
    suggestion: Optional[str] = Field(
        default=None,
        description="A brief suggestion on what the renter could do or ask the landlord regarding this issue.",
    )


class EmailDrafts(BaseModel):
    """Four drafts to the landlord, keyed by tone."""

    model_config = ConfigDict(populate_by_name=True)

    better_terms: str = Field(alias="better-terms", description="Email draft for 'Better Terms' tone.")
    discount: str = Field(description="Email draft for 'Get Discount' tone.")
    take_charge: str = Field(alias="take-charge", description="Email draft for 'Take Charge' tone.")
    rampage: str = Field(description="Email draft for 'Rampage' (entertaining/humorous) tone.")


class LeaseAnalysis(BaseModel):
    """Structured output of the document-analysis model."""

    model_config = ConfigDict(populate_by_name=True)

    overall_assessment: str = Field(
        alias="overallAssessment",
        description="A brief (2-4 sentences) overall 'vibe check' of the lease.",
    )
    red_flags: List[RedFlag] = Field(default_factory=list, alias="redFlags")
    email_drafts: EmailDrafts = Field(alias="emailDrafts")

    @field_validator("overall_assessment")
    @classmethod
    def assessment_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("overallAssessment must not be empty")
        return v.strip()


class AnalysisResponse(BaseModel):
    """Body of POST /api/analyze-lease on success."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    overall_assessment: str = Field(alias="overallAssessment")
    red_flags: List[RedFlag] = Field(alias="redFlags")
    email_drafts: EmailDrafts = Field(alias="emailDrafts")
    file_url: str = Field(default="", alias="fileUrl")


def _drop_non_object_turns(value: Any) -> Any:
    """Turns that are not objects are skipped, like turns without a usable role."""
    if isinstance(value, list):
        return [m for m in value if isinstance(m, dict)]
    return value


class ChatMessage(BaseModel):
    """
    A chat turn as sent by the client. Neither role nor content is trusted here:
    callers pick out the turns they can use and skip the rest.
    """

    model_config = ConfigDict(extra="ignore")

    role: Any = None
    content: Any = None


ChatTurns = Annotated[List[ChatMessage], BeforeValidator(_drop_non_object_turns)]


class LangflowChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    messages: ChatTurns
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    def last_user_message(self) -> Optional[ChatMessage]:
        for msg in reversed(self.messages):
            if msg.role == "user":
                return msg
        return None


class LandlordChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    messages: ChatTurns = Field(default_factory=list)
    lease_context: Optional[str] = Field(default=None, alias="leaseContext")
    lease_url: Optional[str] = Field(default=None, alias="leaseUrl")

