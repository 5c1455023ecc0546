"""Shared fixtures: an in-memory stand-in for GitHubPlatform.

Pages are served with real GitHub-style Link headers so the cursor parsing
is exercised on every paginated call.
"""

from __future__ import annotations

import itertools

import pytest
from github import GithubException

from prcritic_core.gh.pagination import Page, PageCursor
from prcritic_core.models import ChangedFile, PullRequestDetails

BOT = "github-actions[bot]"
API = "https://api.github.com/repositories/1/pulls/982/reviews"


def link_header(page: int, total: int) -> str | None:
    if total <= 1:
        return None
    links = []
    if page < total:
        links.append(f'<{API}?per_page=100&page={page + 1}>; rel="next"')
        links.append(f'<{API}?per_page=100&page={total}>; rel="last"')
    if page > 1:
        links.append(f'<{API}?per_page=100&page=1>; rel="first"')
        links.append(f'<{API}?per_page=100&page={page - 1}>; rel="prev"')
    return ", ".join(links)


def serve(pages: list[list[dict]], page: int) -> Page:
    pages = pages or [[]]
    items = pages[page - 1] if 0 < page <= len(pages) else []
    return Page(items=list(items), cursor=PageCursor.from_link_header(page, link_header(page, len(pages))))


def review(review_id, login=BOT, submitted_at="2024-05-01T12:00:00Z", commit_id="c" * 40, body="Looks fine"):
    return {
        "id": review_id,
        "user": {"login": login},
        "body": body,
        "submitted_at": submitted_at,
        "commit_id": commit_id,
    }


def commit(sha, date):
    return {"sha": sha, "commit": {"committer": {"date": date}}}


class FakePlatform:
    repo_name = "keboola/connection"
    owner = "keboola"
    name = "connection"

    def __init__(
        self,
        pr: PullRequestDetails | None = None,
        review_pages: list[list[dict]] | None = None,
        comment_pages: dict[int, list[list[dict]]] | None = None,
        commit_pages: list[list[dict]] | None = None,
        files: list[ChangedFile] | None = None,
        compare: list[ChangedFile] | None = None,
        contents: dict[str, str] | None = None,
        create_failures: int = 0,
        now: str = "2024-05-01T12:00:00Z",
    ):
        self.pr = pr or PullRequestDetails(
            owner="keboola",
            repo="connection",
            number=982,
            title="Add retry to job runner",
            description="Retries failed jobs",
            base_sha="b" * 40,
            head_sha="2" * 40,
        )
        self.review_pages = review_pages if review_pages is not None else [[]]
        self.comment_pages = comment_pages or {}
        self.commit_pages = commit_pages or [[]]
        self.files = files or []
        self.compare = compare
        self.contents = contents or {}
        self.create_failures = create_failures
        self.now = now
        self.calls: list[tuple] = []
        self.created: list[dict] = []
        self._ids = itertools.count(1000)

    async def get_pull_request(self, pr_number):
        self.calls.append(("pull", pr_number))
        return self.pr

    async def list_files(self, pr_number):
        self.calls.append(("files", pr_number))
        return list(self.files)

    async def compare_files(self, base_sha, head_sha):
        self.calls.append(("compare", base_sha, head_sha))
        if self.compare is None:
            raise GithubException(404, {"message": "Not Found"}, None)
        return list(self.compare)

    async def get_file_content(self, path, ref):
        self.calls.append(("content", path, ref))
        return self.contents.get(path)

    async def list_reviews_page(self, pr_number, page):
        self.calls.append(("reviews", page))
        return serve(self.review_pages, page)

    async def list_review_comments_page(self, pr_number, review_id, page):
        self.calls.append(("comments", review_id, page))
        return serve(self.comment_pages.get(review_id, [[]]), page)

    async def list_commits_page(self, pr_number, page):
        self.calls.append(("commits", page))
        return serve(self.commit_pages, page)

    async def create_review(self, pr_number, body, event, comments):
        self.calls.append(("create", pr_number))
        if self.create_failures > 0:
            self.create_failures -= 1
            raise GithubException(422, {"message": "Line could not be resolved"}, None)
        review_id = next(self._ids)
        self.created.append({"body": body, "event": event, "comments": comments})
        # Make the new review visible to the next run, like GitHub would.
        self.review_pages[-1].append(review(review_id, submitted_at=self.now, commit_id=self.pr.head_sha, body=body))
        self.comment_pages[review_id] = [
            [{"path": c["path"], "line": c["line"], "body": c["body"]} for c in comments]
        ]
        return {"id": review_id}


@pytest.fixture
def make_platform():
    return FakePlatform
