"""
Debrief generation for completed vishing simulation calls.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from shared.errors import ServiceError
from shared.logging import get_logger
from ..adapters.llm_client import ChatCompletionClient
from .schemas import (
    ConversationMessage,
    ConversationSummary,
    ConversationSummaryResult,
    NextStepCard,
    StatusCard,
)


DEFAULT_NEXT_STEPS = (
    NextStepCard(
        title="Verifying Caller Identity",
        description="Always verify the caller through official channels before sharing any information.",
        prompt=(
            "Create a microlearning module about verifying caller identity. Focus on: how to "
            "independently verify a caller through official channels, red flags of impersonation, "
            "and steps to take when receiving unexpected calls requesting information."
        ),
    ),
    NextStepCard(
        title="Never Share OTPs or Passwords",
        description="Legitimate organizations never ask for passwords or one-time codes over the phone.",
        prompt=(
            "Create a microlearning module about protecting passwords and OTPs. Focus on: why "
            "legitimate organizations never ask for credentials over the phone, common pretexts "
            "attackers use to request OTPs, and what to do if pressured to share sensitive codes."
        ),
    ),
)

STATUS_CARD_BY_OUTCOME = {
    "data_disclosed": StatusCard(
        variant="warning",
        title="Data Disclosed",
        description=(
            "The recipient shared sensitive information during the call. Review what was "
            "disclosed and take recommended next steps."
        ),
    ),
    "refused": StatusCard(
        variant="success",
        title="No Data Disclosed",
        description="The recipient correctly refused to share sensitive information. Well done recognizing the attempt.",
    ),
    "detected": StatusCard(
        variant="success",
        title="Simulation Detected",
        description="The recipient identified this as a simulation. Great awareness of vishing tactics.",
    ),
    "not_answered": StatusCard(
        variant="info",
        title="Call Not Answered",
        description="The recipient did not pick up the phone. No conversation took place.",
    ),
    "other": StatusCard(
        variant="info",
        title="Call Completed",
        description="The simulation ended. Review the timeline and recommendations below.",
    ),
}

TIMELINE_LABEL_ALIASES = {
    "introduction": "Introduction",
    "intro": "Introduction",
    "credibility_building": "Credibility Building",
    "credibility": "Credibility Building",
    "authority": "Credibility Building",
    "pressure": "Pressure",
    "urgency": "Pressure",
    "data_request": "Data Request",
    "request": "Data Request",
    "ask": "Data Request",
    "data_disclosed": "Data Disclosed",
    "disclosed": "Data Disclosed",
    "disclosure": "Data Disclosed",
    "simulation_reveal": "Simulation Reveal",
    "reveal": "Simulation Reveal",
    "detected": "Simulation Reveal",
    "detection": "Simulation Reveal",
}

OUTCOME_ALIASES = {
    "data_disclosed": "data_disclosed",
    "disclosed": "data_disclosed",
    "shared": "data_disclosed",
    "refused": "refused",
    "reject": "refused",
    "rejected": "refused",
    "detected": "detected",
    "detection": "detected",
    "not_answered": "not_answered",
    "no_answer": "not_answered",
    "unanswered": "not_answered",
    "other": "other",
    "unknown": "other",
}

SYSTEM_PROMPT = """You are a senior security training analyst specializing in social engineering and vishing (voice phishing) assessments. Analyze this transcript from a simulated vishing call and produce a structured debrief for the learner.

CONTEXT: This is a security training simulation, not a real attack. "Agent" = the simulated scammer; "User" = the learner being assessed.

TIMELINE PHASE ENUM (exact, case-sensitive):
"Introduction", "Credibility Building", "Pressure", "Data Request", "Data Disclosed", "Simulation Reveal", "Other"

OUTCOME ENUM (exact, lowercase, underscore):
"data_disclosed", "refused", "detected", "not_answered", "other"

OUTCOME RULES:
- data_disclosed: Learner shared sensitive info (passwords, OTP, card numbers, account details). List each item in disclosedInfo.
- refused: Learner refused and shared no sensitive data. disclosedInfo must be [].
- detected: Learner identified the simulation and shared no sensitive data. disclosedInfo must be [].
- not_answered: The call reached voicemail, an answering machine or an automated system. timeline, disclosedInfo and nextSteps must be [].
- other: Call ended without a clear outcome. disclosedInfo must be [].

NEXT STEPS:
- Tailor to the outcome; 2-4 items, each with title, description and prompt, in English.
- The prompt is a context-rich microlearning creation prompt naming the topic, what happened in THIS call, focus areas, the recipient's inferred role and the call language in full locale form.

OUTPUT STRUCTURE:
{
  "summary": {
    "timeline": [{"timestamp": "MM:SS", "label": "Introduction", "snippet": "<1-2 sentence excerpt>"}],
    "disclosedInfo": [{"item": "<what was shared>", "timestamp": "MM:SS"}],
    "outcome": "refused"
  },
  "nextSteps": [{"title": "<short title>", "description": "<recommendation>", "prompt": "<microlearning prompt>"}]
}

Return ONLY the JSON object. No markdown, no code blocks, no extra text."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _enum_key(value: str) -> str:
    return re.sub(r"[\s-]+", "_", value.strip().lower())


def normalize_timeline_label(label: Any) -> str:
    if not isinstance(label, str):
        return "Other"
    return TIMELINE_LABEL_ALIASES.get(_enum_key(label), "Other")


def normalize_outcome(outcome: Any) -> Any:
    if not isinstance(outcome, str):
        return outcome
    return OUTCOME_ALIASES.get(_enum_key(outcome), outcome)


def normalize_timeline(timeline: Any) -> List[Dict[str, str]]:
    if not isinstance(timeline, list):
        return []
    items = []
    for item in timeline:
        record = item if isinstance(item, dict) else {}
        items.append({
            "timestamp": record["timestamp"] if isinstance(record.get("timestamp"), str) else "0:00",
            "label": normalize_timeline_label(record.get("label")),
            "snippet": record["snippet"] if isinstance(record.get("snippet"), str) else "",
        })
    return items


def parse_next_steps(raw: Any, *, fallback: bool) -> List[NextStepCard]:
    """Valid next step cards; the defaults when none survive and ``fallback`` is set."""
    steps = []
    if isinstance(raw, list):
        for item in raw:
            try:
                steps.append(NextStepCard.model_validate(item))
            except PydanticValidationError:
                continue
    if not steps and fallback:
        return list(DEFAULT_NEXT_STEPS)
    return steps


def build_transcript(messages: Sequence[ConversationMessage]) -> str:
    lines = []
    for message in messages:
        prefix = ""
        if message.timestamp is not None:
            ts = message.timestamp
            prefix = f"[{int(ts) if float(ts).is_integer() else ts}s] "
        speaker = "Agent" if message.role == "agent" else "User"
        lines.append(f"{prefix}{speaker}: {message.text}")
    return "\n".join(lines)


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_RE.sub("", cleaned).strip()
    if not cleaned.startswith("{"):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start != -1 and end > start:
            cleaned = cleaned[start:end + 1]
    return cleaned


def not_answered_result() -> ConversationSummaryResult:
    return ConversationSummaryResult(
        summary=ConversationSummary(timeline=[], disclosed_info=[], outcome="not_answered"),
        next_steps=[],
        status_card=STATUS_CARD_BY_OUTCOME["not_answered"],
    )


def build_result(raw: Dict[str, Any]) -> ConversationSummaryResult:
    """Turn a model payload (nested or flat) into an enforced result."""
    if isinstance(raw.get("summary"), dict):
        summary_raw = dict(raw["summary"])
        next_steps = parse_next_steps(raw.get("nextSteps"), fallback=not isinstance(raw.get("nextSteps"), list))
    elif normalize_outcome(raw.get("outcome")):
        summary_raw = {
            "timeline": raw.get("timeline"),
            "disclosedInfo": raw.get("disclosedInfo") or [],
            "outcome": raw.get("outcome"),
        }
        next_steps = parse_next_steps(raw.get("nextSteps"), fallback=True)
    else:
        raise ServiceError("Summary model returned an unexpected payload")

    summary_raw["timeline"] = normalize_timeline(summary_raw.get("timeline"))
    summary_raw["outcome"] = normalize_outcome(summary_raw.get("outcome"))
    summary_raw.setdefault("disclosedInfo", [])

    try:
        summary = ConversationSummary.model_validate(summary_raw)
    except PydanticValidationError as e:
        raise ServiceError("Summary model returned an invalid summary", details={"errors": e.errors()}) from e

    if summary.outcome == "not_answered":
        return not_answered_result()

    if summary.outcome != "data_disclosed":
        summary = summary.model_copy(update={"disclosed_info": []})

    return ConversationSummaryResult(
        summary=summary,
        next_steps=next_steps,
        status_card=STATUS_CARD_BY_OUTCOME.get(summary.outcome, STATUS_CARD_BY_OUTCOME["other"]),
    )


class SummaryService:
    """Summarizes a vishing call transcript with the summary model."""

    def __init__(self, llm_client: ChatCompletionClient):
        self.llm_client = llm_client
        self.logger = get_logger("vishing.summary_service")

    async def summarize(self, messages: Sequence[ConversationMessage]) -> ConversationSummaryResult:
        user_messages = [m for m in messages if m.role == "user" and m.text.strip()]
        if not user_messages:
            self.logger.info("vishing_conversations_summary_not_answered", total_messages=len(messages))
            return not_answered_result()

        self.logger.info("vishing_conversations_summary_llm_start", message_count=len(messages))
        text = await self.llm_client.complete(
            SYSTEM_PROMPT,
            f"Analyze this vishing simulation transcript:\n\n{build_transcript(messages)}",
        )
        self.logger.info("vishing_conversations_summary_llm_complete")

        try:
            raw = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as e:
            raise ServiceError("Summary model returned malformed JSON") from e
        if not isinstance(raw, dict):
            raise ServiceError("Summary model returned an unexpected payload")

        return build_result(raw)
