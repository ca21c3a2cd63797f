"""
Tests for request and response models.
"""

import pytest
from pydantic import ValidationError

from service_vishing.app.domain.schemas import (
    ConversationMessage,
    ConversationSummaryRequest,
    VishingPromptRequest,
    VishingPromptResponse,
)


def _summary_request(token_length: int = 32, messages=None) -> dict:
    return {
        "accessToken": "t" * token_length,
        "messages": messages if messages is not None else [{"role": "user", "text": "Hello?"}],
    }


class TestVishingPromptRequest:

    def test_valid(self):
        parsed = VishingPromptRequest.model_validate({"microlearningId": "ml-1", "language": "en"})
        assert parsed.microlearning_id == "ml-1"
        assert parsed.language == "en"

    def test_short_language_rejected(self):
        with pytest.raises(ValidationError):
            VishingPromptRequest.model_validate({"microlearningId": "ml-1", "language": "e"})

    def test_blank_id_rejected(self):
        with pytest.raises(ValidationError):
            VishingPromptRequest.model_validate({"microlearningId": "   ", "language": "en"})


class TestConversationSummaryRequest:

    def test_token_of_31_characters_rejected(self):
        with pytest.raises(ValidationError):
            ConversationSummaryRequest.model_validate(_summary_request(31))

    def test_token_of_32_characters_accepted(self):
        parsed = ConversationSummaryRequest.model_validate(_summary_request(32))
        assert len(parsed.access_token) == 32

    def test_token_over_limit_rejected(self):
        with pytest.raises(ValidationError):
            ConversationSummaryRequest.model_validate(_summary_request(4097))

    def test_empty_messages_rejected(self):
        with pytest.raises(ValidationError):
            ConversationSummaryRequest.model_validate(_summary_request(messages=[]))

    def test_too_many_messages_rejected(self):
        messages = [{"role": "agent", "text": "hi"}] * 501
        with pytest.raises(ValidationError):
            ConversationSummaryRequest.model_validate(_summary_request(messages=messages))

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            ConversationSummaryRequest.model_validate(
                _summary_request(messages=[{"role": "system", "text": "hi"}])
            )

    def test_message_field_accepted_as_text(self):
        parsed = ConversationSummaryRequest.model_validate(
            _summary_request(messages=[{"role": "agent", "message": "  Hello from the bank  ", "timestamp": 3}])
        )
        assert parsed.messages[0].text == "Hello from the bank"
        assert parsed.messages[0].timestamp == 3

    def test_empty_items_dropped(self):
        parsed = ConversationSummaryRequest.model_validate(
            _summary_request(messages=[
                {"role": "agent", "text": ""},
                {"role": "user", "text": "   "},
                {"role": "user", "text": "Who is this?"},
            ])
        )
        assert [m.text for m in parsed.messages] == ["Who is this?"]

    def test_only_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            ConversationSummaryRequest.model_validate(
                _summary_request(messages=[{"role": "agent", "text": ""}])
            )

    def test_populate_by_field_name(self):
        message = ConversationMessage(role="user", text="ok")
        parsed = ConversationSummaryRequest(access_token="x" * 40, messages=[message])
        assert parsed.messages == [message]


class TestVishingPromptResponse:

    def test_signed_url_omitted_when_absent(self):
        response = VishingPromptResponse(
            microlearning_id="ml-1",
            language="en",
            prompt="P",
            first_message="F",
            agent_id="agent",
            ws_url="wss://voice",
        )
        payload = response.model_dump(mode="json", by_alias=True, exclude_none=True)

        assert payload == {
            "success": True,
            "microlearningId": "ml-1",
            "language": "en",
            "prompt": "P",
            "firstMessage": "F",
            "agentId": "agent",
            "wsUrl": "wss://voice",
        }
