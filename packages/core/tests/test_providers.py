"""Tests for AI provider implementations.

Shared behaviour (prompt building, parsing, error propagation) lives in
BaseReviewer and is tested once via a lightweight stub. Provider-specific
tests cover only the SDK call each provider makes in _call_api.
"""

import json
from types import SimpleNamespace

import pytest

from prcritic_core.models import (
    FileForReview,
    LineComment,
    ParseFailure,
    PullRequestDetails,
    ReviewContext,
    ReviewRecord,
    ReviewRequest,
    ReviewResponse,
    SuggestedAction,
)
from prcritic_core.prompts import BASE_REVIEW_PROMPT, GUIDELINES_HEADER, UPDATE_REVIEW_PROMPT
from prcritic_core.providers.base import BaseReviewer
from prcritic_core.providers.gemini import GeminiReviewer

VALID_JSON = json.dumps(
    {
        "summary": "Looks good overall.",
        "comments": [{"path": "src/foo.py", "line": 3, "comment": "Missing error handling"}],
        "suggestedAction": "COMMENT",
        "confidence": 0.7,
    }
)

PR = PullRequestDetails(
    owner="keboola",
    repo="connection",
    number=982,
    title="Add retry to job runner",
    description="Fixes flaky imports",
    base_sha="b" * 40,
    head_sha="2" * 40,
)


def make_request(is_update=False, previous=None):
    return ReviewRequest(
        pull_request=PR,
        files=[FileForReview(path="src/foo.py", patch="@@ -1 +1,2 @@\n a\n+b", content="a\nb\n")],
        context=ReviewContext(is_update=is_update, project_context="PHP monolith"),
        previous_reviews=previous or [],
    )


class _StubReviewer(BaseReviewer):
    MODEL = "stub-1"

    def __init__(self, reply=VALID_JSON, **kwargs):
        super().__init__(**kwargs)
        self.reply = reply
        self.prompts = None

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts = (system_prompt, user_prompt)
        return self.reply


# ---------------------------------------------------------------------------
# Shared behaviour, tested once through the stub
# ---------------------------------------------------------------------------


class TestBaseReviewer:
    def test_default_and_explicit_model(self):
        assert _StubReviewer().model == "stub-1"
        assert _StubReviewer(model="stub-2").model == "stub-2"

    async def test_review_returns_parsed_response(self):
        result = await _StubReviewer().review(make_request())
        assert result == ReviewResponse(
            summary="Looks good overall.",
            line_comments=[LineComment("src/foo.py", 3, "Missing error handling")],
            suggested_action=SuggestedAction.COMMENT,
            confidence=0.7,
        )

    async def test_unreadable_reply_is_a_parse_failure(self):
        result = await _StubReviewer(reply="Sorry, I can't help with that.").review(make_request())
        assert isinstance(result, ParseFailure)

    async def test_api_errors_propagate(self):
        class _Failing(BaseReviewer):
            async def _call_api(self, system_prompt, user_prompt):
                raise ConnectionError("network error")

        with pytest.raises(ConnectionError):
            await _Failing().review(make_request())


class TestPrompts:
    async def test_first_review_system_prompt(self):
        reviewer = _StubReviewer()
        await reviewer.review(make_request())
        system, _ = reviewer.prompts
        assert system.startswith(BASE_REVIEW_PROMPT)
        assert UPDATE_REVIEW_PROMPT not in system
        assert GUIDELINES_HEADER not in system

    async def test_update_and_guidelines_are_appended(self):
        reviewer = _StubReviewer(guidelines="- Prefer early returns")
        await reviewer.review(make_request(is_update=True))
        system, _ = reviewer.prompts
        assert UPDATE_REVIEW_PROMPT in system
        assert system.endswith(f"{GUIDELINES_HEADER}\n\n- Prefer early returns")

    def test_user_prompt_payload(self):
        previous = [ReviewRecord("a" * 40, "Earlier summary", [LineComment("src/foo.py", 1, "Old note")])]
        payload = json.loads(_StubReviewer()._build_user_prompt(make_request(is_update=True, previous=previous)))

        assert payload["type"] == "code_review"
        assert payload["files"] == [{"path": "src/foo.py", "patch": "@@ -1 +1,2 @@\n a\n+b", "content": "a\nb\n"}]
        assert payload["pr"] == {
            "title": "Add retry to job runner",
            "description": "Fixes flaky imports",
            "base": "b" * 40,
            "head": "2" * 40,
        }
        assert payload["context"] == {"isUpdate": True, "projectContext": "PHP monolith"}
        assert payload["previousReviews"] == [
            {"summary": "Earlier summary", "lineComments": [{"path": "src/foo.py", "line": 1, "comment": "Old note"}]}
        ]


# ---------------------------------------------------------------------------
# Provider-specific: only the SDK call differs
# ---------------------------------------------------------------------------


class TestGeminiReviewer:
    def test_defaults(self):
        assert GeminiReviewer.MODEL.startswith("gemini")
        assert GeminiReviewer.TEMPERATURE == 0.0

    async def test_requests_json_output(self, mocker):
        client_cls = mocker.patch("google.genai.Client")
        generate = client_cls.return_value.aio.models.generate_content = mocker.AsyncMock(
            return_value=SimpleNamespace(text=VALID_JSON)
        )

        reviewer = GeminiReviewer(api_key="key", model="gemini-2.5-pro")
        result = await reviewer.review(make_request())

        client_cls.assert_called_once_with(api_key="key")
        kwargs = generate.await_args.kwargs
        assert kwargs["model"] == "gemini-2.5-pro"
        assert kwargs["config"].response_mime_type == "application/json"
        assert kwargs["config"].temperature == 0.0
        assert json.loads(kwargs["contents"])["pr"]["title"] == "Add retry to job runner"
        assert isinstance(result, ReviewResponse)

    async def test_empty_text_is_a_parse_failure(self, mocker):
        client_cls = mocker.patch("google.genai.Client")
        client_cls.return_value.aio.models.generate_content = mocker.AsyncMock(
            return_value=SimpleNamespace(text=None)
        )
        result = await GeminiReviewer(api_key="key").review(make_request())
        assert isinstance(result, ParseFailure)


class TestAnthropicReviewer:
    async def test_joins_text_blocks(self, mocker):
        anthropic = pytest.importorskip("anthropic")
        from anthropic.types import TextBlock

        from prcritic_core.providers.anthropic import AnthropicReviewer

        client_cls = mocker.patch.object(anthropic, "AsyncAnthropic")
        create = client_cls.return_value.messages.create = mocker.AsyncMock(
            return_value=SimpleNamespace(content=[TextBlock(type="text", text=f"```json\n{VALID_JSON}\n```")])
        )

        result = await AnthropicReviewer(api_key="key").review(make_request())

        assert isinstance(result, ReviewResponse)
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == AnthropicReviewer.MODEL
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"][0]["role"] == "user"

    def test_raises_import_error_without_sdk(self, mocker):
        from prcritic_core.providers.anthropic import AnthropicReviewer

        mocker.patch.dict("sys.modules", {"anthropic": None})
        with pytest.raises(ImportError, match="prcritic\\[anthropic\\]"):
            AnthropicReviewer(api_key="key")


class TestOpenAIReviewer:
    async def test_requests_json_object(self, mocker):
        pytest.importorskip("openai")
        from prcritic_core.providers import openai as openai_mod

        client_cls = mocker.patch.object(openai_mod, "_AsyncOpenAI")
        message = SimpleNamespace(content=VALID_JSON)
        create = client_cls.return_value.chat.completions.create = mocker.AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )

        result = await openai_mod.OpenAIReviewer(api_key="key").review(make_request())

        assert isinstance(result, ReviewResponse)
        kwargs = create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user"]

    def test_raises_import_error_without_sdk(self, mocker):
        from prcritic_core.providers import openai as openai_mod

        mocker.patch.object(openai_mod, "_AsyncOpenAI", None)
        with pytest.raises(ImportError, match="prcritic\\[openai\\]"):
            openai_mod.OpenAIReviewer(api_key="key")
