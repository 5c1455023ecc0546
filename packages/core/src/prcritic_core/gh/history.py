"""Reconstruct what the automation already reviewed on a pull request.

Nothing is cached between runs. The platform's own review list is the only
record, so every run rebuilds:

* when the automation last submitted a review,
* which commit that review covered (the newest commit committed at or before
  the review), and
* the full log of earlier automation reviews with their inline comments.

Only reviews authored by ``bot_login`` count. Human reviews are ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING

from prcritic_core.gh.pagination import Page, fetch_all_pages
from prcritic_core.models import LineComment, ReviewHistory, ReviewRecord
from prcritic_core.utils.concurrency import gather_bounded

if TYPE_CHECKING:
    from prcritic_core.gh.pull_request import GitHubPlatform

logger = logging.getLogger(__name__)

DEFAULT_BOT_LOGIN = "github-actions[bot]"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp ("2024-05-01T12:00:00Z")."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ReviewHistoryResolver:
    def __init__(self, platform: GitHubPlatform, bot_login: str = DEFAULT_BOT_LOGIN, max_concurrency: int = 4):
        self.platform = platform
        self.bot_login = bot_login
        self.max_concurrency = max_concurrency

    def _is_bot(self, item: dict) -> bool:
        user = item.get("user") or {}
        return user.get("login") == self.bot_login

    def _latest_bot_review(self, reviews: list[dict]) -> dict | None:
        return next((r for r in reversed(reviews) if self._is_bot(r)), None)

    async def _reviews_page(self, pr_number: int, page: int, seen: dict[int, Page] | None = None) -> Page:
        if seen is None:
            return await self.platform.list_reviews_page(pr_number, page)
        if page not in seen:
            seen[page] = await self.platform.list_reviews_page(pr_number, page)
        return seen[page]

    async def resolve(self, pr_number: int) -> ReviewHistory:
        # Review pages fetched for the timestamp walk are reused for the full log.
        seen: dict[int, Page] = {}
        last_review_at = await self.last_review_submitted_at(pr_number, seen)
        last_commit = await self._commit_at(pr_number, last_review_at) if last_review_at else None
        previous = await self.previous_reviews(pr_number, seen)
        return ReviewHistory(
            last_review_at=last_review_at,
            last_reviewed_commit=last_commit,
            previous_reviews=previous,
        )

    async def last_review_submitted_at(self, pr_number: int, seen: dict[int, Page] | None = None) -> datetime | None:
        """Submission time of the most recent automation review, or None.

        The API lists reviews oldest first. When there is more than one page we
        walk from the last page back to page 2 and stop at the first page that
        has an automation review with a submission time. Page 1, which we
        already hold, is checked last.
        """
        first = await self._reviews_page(pr_number, 1, seen)
        last_page = first.cursor.last_page or first.cursor.next_page or 1

        if last_page > 1:
            for page_number in range(last_page, 1, -1):
                page = await self._reviews_page(pr_number, page_number, seen)
                review = self._latest_bot_review(page.items)
                if review and review.get("submitted_at"):
                    return parse_timestamp(review["submitted_at"])

        review = self._latest_bot_review(first.items)
        if review is None:
            return None
        return parse_timestamp(review.get("submitted_at"))

    async def last_reviewed_commit(self, pr_number: int) -> str | None:
        """SHA of the newest commit the last automation review could have seen.

        None means there is no usable boundary and the whole diff is unreviewed.
        """
        submitted_at = await self.last_review_submitted_at(pr_number)
        if submitted_at is None:
            return None
        return await self._commit_at(pr_number, submitted_at)

    async def _commit_at(self, pr_number: int, moment: datetime) -> str | None:
        commits = await fetch_all_pages(partial(self.platform.list_commits_page, pr_number))
        best_sha: str | None = None
        best_date: datetime | None = None
        for commit in reversed(commits):
            committed_at = parse_timestamp(((commit.get("commit") or {}).get("committer") or {}).get("date"))
            if committed_at is None or committed_at > moment:
                continue
            if best_date is None or committed_at > best_date:
                best_sha, best_date = commit.get("sha"), committed_at
        logger.debug("Commit boundary for PR #%d at %s: %s", pr_number, moment.isoformat(), best_sha)
        return best_sha

    async def previous_reviews(self, pr_number: int, seen: dict[int, Page] | None = None) -> list[ReviewRecord]:
        """Every automation review on the PR with all of its inline comments.

        Review pages are read exhaustively. Each review's comment pages are read
        in order, while different reviews are fetched concurrently.
        """
        reviews = await fetch_all_pages(partial(self._reviews_page, pr_number, seen=seen))
        bot_reviews = [r for r in reviews if self._is_bot(r)]
        logger.debug("Found %d automation review(s) out of %d on PR #%d", len(bot_reviews), len(reviews), pr_number)

        comment_lists = await gather_bounded(
            [partial(self._review_comments, pr_number, review["id"]) for review in bot_reviews],
            self.max_concurrency,
        )
        return [
            ReviewRecord(
                commit_id=review.get("commit_id"),
                summary=review.get("body") or "",
                line_comments=comments,
            )
            for review, comments in zip(bot_reviews, comment_lists)
        ]

    async def _review_comments(self, pr_number: int, review_id: int) -> list[LineComment]:
        raw = await fetch_all_pages(partial(self.platform.list_review_comments_page, pr_number, review_id))
        logger.debug("Found %d comment(s) for review %s", len(raw), review_id)
        return [
            LineComment(path=c.get("path", ""), line=c.get("line") or 0, comment=c.get("body") or "")
            for c in raw
        ]
