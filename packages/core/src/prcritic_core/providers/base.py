"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_api()   ← only this differs per provider
             → _parse()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod

from prcritic_core.models import ReviewRequest, ReviewResult
from prcritic_core.prompts import BASE_REVIEW_PROMPT, GUIDELINES_HEADER, UPDATE_REVIEW_PROMPT
from prcritic_core.providers.normalize import normalize_response

logger = logging.getLogger(__name__)

_MAX_TOKENS = 8192


class BaseReviewer(ABC):
    MODEL: str = ""
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, model: str | None = None, guidelines: str = ""):
        self.model = model or self.MODEL
        self.guidelines = guidelines

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def review(self, request: ReviewRequest) -> ReviewResult:
        """Run one review turn for the whole pull request.

        Provider errors propagate. Unreadable output comes back as a
        ParseFailure instead of raising.
        """
        system = self._build_system_prompt(request)
        user = self._build_user_prompt(request)
        logger.debug("Sending %d file(s) to %s (%s)", len(request.files), self.__class__.__name__, self.model)
        raw = await self._call_api(system, user)
        logger.debug("Raw %s response: %s", self.__class__.__name__, raw)
        return self._parse(raw)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self, request: ReviewRequest) -> str:
        parts = [BASE_REVIEW_PROMPT]
        if request.context.is_update:
            parts.append(UPDATE_REVIEW_PROMPT)
        if self.guidelines:
            parts.append(f"{GUIDELINES_HEADER}\n\n{self.guidelines}")
        return "\n\n".join(parts)

    def _build_user_prompt(self, request: ReviewRequest) -> str:
        pr = request.pull_request
        payload = {
            "type": "code_review",
            "files": [{"path": f.path, "patch": f.patch, "content": f.content} for f in request.files],
            "pr": {
                "title": pr.title,
                "description": pr.description,
                "base": pr.base_sha,
                "head": pr.head_sha,
            },
            "context": {
                "isUpdate": request.context.is_update,
                "projectContext": request.context.project_context,
            },
            "previousReviews": [
                {
                    "summary": r.summary,
                    "lineComments": [{"path": c.path, "line": c.line, "comment": c.comment} for c in r.line_comments],
                }
                for r in request.previous_reviews
            ],
        }
        return json.dumps(payload)

    def _parse(self, raw: str) -> ReviewResult:
        return normalize_response(raw)
