"""Data models shared across the review pipeline.

Every entity is derived from the hosting platform or the AI provider on each
run; nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

FALLBACK_SUMMARY = "Failed to parse AI response"


class SuggestedAction(str, Enum):
    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"

    @classmethod
    def parse(cls, value) -> SuggestedAction:
        """Case-insensitive lookup; raises ValueError for unknown actions."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


@dataclass(frozen=True)
class PullRequestDetails:
    owner: str
    repo: str
    number: int
    title: str
    description: str
    base_sha: str
    head_sha: str
    draft: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ChangedFile:
    path: str
    patch: str
    status: str = "modified"


@dataclass(frozen=True)
class LineComment:
    path: str
    line: int  # 0 = unanchored
    comment: str


@dataclass(frozen=True)
class ReviewRecord:
    """One historical automation review and the inline comments posted with it."""

    commit_id: str | None
    summary: str
    line_comments: list[LineComment] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewResponse:
    summary: str
    line_comments: list[LineComment] = field(default_factory=list)
    suggested_action: SuggestedAction = SuggestedAction.COMMENT
    confidence: float = 0


@dataclass(frozen=True)
class ParseFailure:
    """The AI returned text that could not be turned into a ReviewResponse.

    Reads like the fallback review (fixed summary, no comments, COMMENT, zero
    confidence) but is a separate type so callers can tell "the model said
    nothing" apart from "the model said something unreadable".
    """

    reason: str
    raw_text: str = ""

    summary = FALLBACK_SUMMARY
    suggested_action = SuggestedAction.COMMENT
    confidence = 0

    @property
    def line_comments(self) -> list[LineComment]:
        return []

    def to_response(self) -> ReviewResponse:
        return ReviewResponse(
            summary=self.summary,
            line_comments=[],
            suggested_action=self.suggested_action,
            confidence=self.confidence,
        )


ReviewResult = Union[ReviewResponse, ParseFailure]


@dataclass(frozen=True)
class ReviewHistory:
    last_review_at: datetime | None = None
    last_reviewed_commit: str | None = None
    previous_reviews: list[ReviewRecord] = field(default_factory=list)

    @property
    def is_update(self) -> bool:
        return bool(self.previous_reviews) or self.last_review_at is not None


@dataclass(frozen=True)
class FileForReview:
    path: str
    patch: str
    content: str


@dataclass(frozen=True)
class ReviewContext:
    is_update: bool = False
    project_context: str = ""


@dataclass(frozen=True)
class ReviewRequest:
    """Everything the AI provider sees for a single review turn."""

    pull_request: PullRequestDetails
    files: list[FileForReview]
    context: ReviewContext = field(default_factory=ReviewContext)
    previous_reviews: list[ReviewRecord] = field(default_factory=list)
