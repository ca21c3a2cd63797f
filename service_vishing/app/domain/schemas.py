"""
Request and response models for Vishing service routes.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


MIN_ACCESS_TOKEN_LENGTH = 32
MAX_ACCESS_TOKEN_LENGTH = 4096
MAX_MESSAGES = 500

TIMELINE_LABELS = (
    "Introduction",
    "Credibility Building",
    "Pressure",
    "Data Request",
    "Data Disclosed",
    "Simulation Reveal",
    "Other",
)

TimelineLabel = Literal[
    "Introduction",
    "Credibility Building",
    "Pressure",
    "Data Request",
    "Data Disclosed",
    "Simulation Reveal",
    "Other",
]
Outcome = Literal["data_disclosed", "refused", "detected", "not_answered", "other"]


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while exposing snake_case attributes."""
    model_config = ConfigDict(populate_by_name=True)


# Voice prompt

class VishingPromptRequest(CamelModel):
    """Request model for voice prompt retrieval."""
    microlearning_id: str = Field(..., alias="microlearningId", min_length=1)
    language: str = Field(..., min_length=2)

    @field_validator("microlearning_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("microlearningId must not be blank")
        return value


class VishingPromptResponse(CamelModel):
    """Successful voice prompt payload."""
    success: bool = True
    microlearning_id: str = Field(..., alias="microlearningId")
    language: str
    prompt: str
    first_message: str = Field(..., alias="firstMessage")
    agent_id: str = Field(..., alias="agentId")
    ws_url: str = Field(..., alias="wsUrl")
    signed_url: Optional[str] = Field(None, alias="signedUrl")


# Conversation summary

class ConversationMessage(CamelModel):
    """One transcript line; ``message`` is accepted as a synonym of ``text``."""
    role: Literal["agent", "user"]
    text: str = Field(..., min_length=1)
    timestamp: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _text_from_message(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            text = data.get("text") or data.get("message")
            if isinstance(text, str):
                text = text.strip()
            data["text"] = text
            data.pop("message", None)
        return data


def _has_content(item: Any) -> bool:
    if not isinstance(item, dict):
        return True
    return any(isinstance(item.get(key), str) and item[key].strip() for key in ("text", "message"))


class ConversationSummaryRequest(CamelModel):
    """Request model for the conversation summary route."""
    access_token: str = Field(
        ...,
        alias="accessToken",
        min_length=MIN_ACCESS_TOKEN_LENGTH,
        max_length=MAX_ACCESS_TOKEN_LENGTH,
    )
    messages: List[ConversationMessage] = Field(..., min_length=1, max_length=MAX_MESSAGES)

    @field_validator("messages", mode="before")
    @classmethod
    def _drop_empty_messages(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if _has_content(item)]
        return value


class TimelineItem(BaseModel):
    timestamp: str
    label: TimelineLabel
    snippet: str


class DisclosedItem(BaseModel):
    item: str
    timestamp: str


class ConversationSummary(CamelModel):
    """Timeline, disclosed items and outcome of a simulated call."""
    timeline: List[TimelineItem] = Field(default_factory=list)
    disclosed_info: List[DisclosedItem] = Field(default_factory=list, alias="disclosedInfo")
    outcome: Outcome


class StatusCard(BaseModel):
    variant: Literal["warning", "success", "info"]
    title: str
    description: str


class NextStepCard(BaseModel):
    title: str
    description: str
    prompt: Optional[str] = None


class ConversationSummaryResult(BaseModel):
    """Summarizer output consumed by the route."""
    summary: ConversationSummary
    next_steps: List[NextStepCard] = Field(default_factory=list)
    status_card: StatusCard


class ConversationSummaryResponse(CamelModel):
    """Successful conversation summary payload."""
    success: bool = True
    summary: ConversationSummary
    disclosed_information: List[DisclosedItem] = Field(default_factory=list, alias="disclosedInformation")
    next_steps: List[NextStepCard] = Field(default_factory=list, alias="nextSteps")
    status_card: StatusCard = Field(..., alias="statusCard")
