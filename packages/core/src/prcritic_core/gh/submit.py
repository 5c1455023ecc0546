"""Post a ReviewResponse back to the pull request as a GitHub review."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcritic_core.models import ReviewResponse, SuggestedAction

if TYPE_CHECKING:
    from prcritic_core.gh.pull_request import GitHubPlatform

logger = logging.getLogger(__name__)

OMITTED_COMMENTS_NOTE = "> Note: Some line comments were omitted due to technical limitations."


def to_review_comments(review: ReviewResponse) -> list[dict]:
    """Inline comments anchored to the new (RIGHT) side of the diff."""
    return [{"path": c.path, "side": "RIGHT", "line": c.line, "body": c.comment} for c in review.line_comments]


class ReviewSubmitter:
    def __init__(self, platform: GitHubPlatform):
        self.platform = platform

    async def submit(self, pr_number: int, review: ReviewResponse) -> None:
        """Create one review on the PR.

        GitHub rejects the whole request when any inline comment points outside
        the diff, so a failed attempt is retried exactly once with no inline
        comments and a note in the summary. A second failure propagates.
        """
        event = SuggestedAction.parse(review.suggested_action).value
        comments = to_review_comments(review)
        logger.info("Submitting %s review with %d comment(s) on PR #%d", event, len(comments), pr_number)
        logger.debug("Review comments: %s", comments)

        try:
            await self.platform.create_review(pr_number, body=review.summary, event=event, comments=comments)
            return
        except Exception as e:
            logger.warning("Failed to submit review with comments: %s", e)

        logger.info("Retrying without line comments...")
        await self.platform.create_review(
            pr_number,
            body=f"{review.summary}\n\n{OMITTED_COMMENTS_NOTE}",
            event=event,
            comments=[],
        )
