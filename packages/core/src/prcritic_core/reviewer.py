"""Core PR review orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from functools import partial
from typing import TYPE_CHECKING, Sequence

from github import GithubException, UnknownObjectException
from rich.console import Console

from prcritic_core.config import load_guidelines
from prcritic_core.gh.history import ReviewHistoryResolver
from prcritic_core.gh.submit import ReviewSubmitter
from prcritic_core.models import (
    ChangedFile,
    FileForReview,
    LineComment,
    ParseFailure,
    ReviewContext,
    ReviewRequest,
    ReviewResponse,
    SuggestedAction,
)
from prcritic_core.providers.anthropic import AnthropicReviewer
from prcritic_core.providers.gemini import GeminiReviewer
from prcritic_core.providers.openai import OpenAIReviewer
from prcritic_core.utils.code import commentable_lines, is_code_file, is_excluded
from prcritic_core.utils.concurrency import gather_bounded

if TYPE_CHECKING:
    from prcritic_core.gh.pull_request import GitHubPlatform
    from prcritic_core.providers.base import BaseReviewer

console = Console()
logger = logging.getLogger(__name__)

_REVIEWABLE_STATUSES = ("added", "modified", "renamed", "changed", "copied")


@dataclass
class ReviewSummary:
    """What a run did, for the CLI to report."""

    repo: str
    pr_number: int
    head_sha: str
    event: str  # "APPROVE" | "COMMENT" | "REQUEST_CHANGES"
    reviewed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    comments: list[LineComment] = field(default_factory=list)
    base_sha: str | None = None  # set for incremental reviews
    parse_failed: bool = False
    posted: bool = False
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_comments(self) -> int:
        return len(self.comments)


def get_reviewer(config: dict) -> BaseReviewer:
    provider = config["provider"]
    guidelines = load_guidelines(config)
    model = config.get("model")
    if provider == "gemini":
        return GeminiReviewer(api_key=config["gemini_api_key"], model=model, guidelines=guidelines)
    if provider == "anthropic":
        return AnthropicReviewer(api_key=config["anthropic_api_key"], model=model, guidelines=guidelines)
    if provider == "openai":
        return OpenAIReviewer(api_key=config["openai_api_key"], model=model, guidelines=guidelines)
    raise ValueError(f"Unknown provider: {provider!r}. Choose 'gemini', 'anthropic' or 'openai'.")


def split_anchorable(
    comments: list[LineComment], files: Sequence[ChangedFile | FileForReview]
) -> tuple[list[LineComment], list[LineComment]]:
    """Separate comments GitHub can anchor on the new side of the diff from those it would reject."""
    allowed = {f.path: commentable_lines(f.patch) for f in files}
    anchored: list[LineComment] = []
    unanchored: list[LineComment] = []
    for c in comments:
        if c.line in allowed.get(c.path, ()):
            anchored.append(c)
        else:
            logger.debug("Comment on %s:%d is outside the diff; moving it to the summary", c.path, c.line)
            unanchored.append(c)
    return anchored, unanchored


def _append_unanchored(summary: str, comments: list[LineComment]) -> str:
    if not comments:
        return summary
    notes = "\n".join(f"- `{c.path}:{c.line}`: {c.comment}" for c in comments)
    return f"{summary}\n\n**Additional notes**\n\n{notes}"


def _resolve_event(action: SuggestedAction, allow_approve: bool) -> SuggestedAction:
    if action is SuggestedAction.APPROVE and not allow_approve:
        return SuggestedAction.COMMENT
    return action


def print_shadow_review(review: ReviewResponse) -> None:
    """Print a review to the terminal without posting it."""
    action = review.suggested_action.value
    console.print(f"\n[bold]Shadow review: {action}[/bold] (confidence {review.confidence})\n")
    console.print(review.summary, markup=False)
    for c in review.line_comments:
        console.print(f"\n[bold cyan]{c.path}[/bold cyan]  line [bold]{c.line}[/bold]")
        console.print(f"  {c.comment}", markup=False)
    console.print()


async def _select_files(
    platform: GitHubPlatform, pr_number: int, head_sha: str, boundary: str | None
) -> tuple[list[ChangedFile], str | None]:
    if boundary:
        try:
            files = await platform.compare_files(boundary, head_sha)
            console.print(
                f"[cyan]Incremental review: {boundary[:7]} → {head_sha[:7]} "
                f"({len(files)} file(s) changed)[/cyan]"
            )
            return files, boundary
        except GithubException as e:
            logger.warning("Could not compute incremental diff: %s", e)
            console.print(
                "[yellow]Could not compute incremental diff (force push?). Falling back to full review.[/yellow]"
            )
    return await platform.list_files(pr_number), None


async def run_review(
    platform: GitHubPlatform,
    reviewer: BaseReviewer,
    pr_number: int,
    config: dict,
    *,
    shadow: bool = False,
    force_full: bool = False,
) -> ReviewSummary | None:
    """Review the pull request once, end to end.

    Returns None when there is nothing to do (draft PR or no new commits).
    An unreadable AI response is posted as the fallback review unless
    ``post_on_parse_failure`` is turned off. Platform and provider errors propagate.
    """
    try:
        pr = await platform.get_pull_request(pr_number)
    except UnknownObjectException:
        raise ValueError(f"PR #{pr_number} not found in {platform.repo_name}.")

    if pr.draft and not config.get("review_draft_prs", False):
        console.print(
            "[yellow]Skipping draft PR. Set review_draft_prs: true in .prcritic.yml to review drafts.[/yellow]"
        )
        return None

    resolver = ReviewHistoryResolver(
        platform,
        bot_login=config.get("bot_login", "github-actions[bot]"),
        max_concurrency=config.get("max_concurrency", 4),
    )
    history = await resolver.resolve(pr_number)
    logger.info(
        "PR #%d: %d previous automation review(s), last reviewed commit %s",
        pr_number,
        len(history.previous_reviews),
        history.last_reviewed_commit,
    )

    boundary = None if force_full else history.last_reviewed_commit
    if boundary and boundary == pr.head_sha:
        console.print("[yellow]No new commits since the last review. Nothing to do.[/yellow]")
        return None

    changed, base_sha = await _select_files(platform, pr_number, pr.head_sha, boundary)
    changed = sorted(changed, key=lambda f: f.path)

    exclude_patterns = config.get("exclude", [])
    max_chars = config.get("max_chars_per_file", 20000)
    selected: list[ChangedFile] = []
    skipped: list[str] = []
    for f in changed:
        if (
            f.status not in _REVIEWABLE_STATUSES
            or not f.patch
            or is_excluded(f.path, exclude_patterns)
            or not is_code_file(f.path)
        ):
            console.print(f"  Skipping: {f.path}")
            skipped.append(f.path)
            continue
        selected.append(f)

    summary = ReviewSummary(
        repo=pr.full_name,
        pr_number=pr_number,
        head_sha=pr.head_sha,
        event=SuggestedAction.COMMENT.value,
        reviewed_files=[f.path for f in selected],
        skipped_files=skipped,
        base_sha=base_sha,
    )
    if not selected:
        console.print("[yellow]No reviewable files in this change.[/yellow]")
        return summary

    contents = await gather_bounded(
        [partial(platform.get_file_content, f.path, pr.head_sha) for f in selected],
        config.get("max_concurrency", 4),
    )
    files = [
        FileForReview(
            path=f.path,
            patch=_truncate(f.patch, max_chars, "diff"),
            content=_truncate(c or "", max_chars, "file"),
        )
        for f, c in zip(selected, contents)
    ]

    request = ReviewRequest(
        pull_request=pr,
        files=files,
        context=ReviewContext(is_update=history.is_update, project_context=config.get("project_context", "")),
        previous_reviews=history.previous_reviews,
    )
    console.print(f"Reviewing {len(files)} file(s) with {reviewer.__class__.__name__} ({reviewer.model})...")
    result = await reviewer.review(request)

    if isinstance(result, ParseFailure):
        summary.parse_failed = True
        if not config.get("post_on_parse_failure", True):
            console.print("[red]The AI response could not be parsed; no review was posted.[/red]")
            return summary
        response = result.to_response()
    else:
        response = result

    # Anchor against the full patch; a truncated one ends in a marker line.
    anchored, unanchored = split_anchorable(response.line_comments, selected)
    event = _resolve_event(response.suggested_action, config.get("approve_reviews", False))
    response = replace(
        response,
        summary=_append_unanchored(response.summary, unanchored),
        line_comments=anchored,
        suggested_action=event,
    )
    summary.event = event.value
    summary.comments = anchored

    if shadow:
        print_shadow_review(response)
        console.print(f"[bold]Shadow review complete. {len(anchored)} comment(s) would be posted.[/bold]")
        return summary

    await ReviewSubmitter(platform).submit(pr_number, response)
    summary.posted = True
    console.print(
        f"\n[green]Review posted: {event.value}. "
        f"{len(anchored)} comment(s) across {len(files)} file(s).[/green]"
    )
    return summary


def _truncate(text: str, limit: int, label: str) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"\n... [{label} truncated]"
