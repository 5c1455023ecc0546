"""Thin async wrapper around the GitHub REST API.

PyGithub is synchronous, so each call runs in a worker thread and every
platform operation becomes an await point. List endpoints whose pagination
we drive ourselves go through the PyGithub requester, which hands back the
response headers alongside the JSON body.
"""

from __future__ import annotations

import asyncio
import logging

from github import Auth, Github, UnknownObjectException

from prcritic_core.gh.pagination import Page, PageCursor
from prcritic_core.models import ChangedFile, PullRequestDetails

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100


class GitHubPlatform:
    def __init__(self, repo_name: str, token: str | None, per_page: int = MAX_PER_PAGE, client: Github | None = None):
        if "/" not in repo_name:
            raise ValueError(f"Repository must be in owner/name format, got {repo_name!r}.")
        self.repo_name = repo_name
        self.owner, self.name = repo_name.split("/", 1)
        self.per_page = max(1, min(per_page, MAX_PER_PAGE))
        if client is None:
            client = Github(auth=Auth.Token(token)) if token else Github()
        self._client = client

    # ------------------------------------------------------------------ #
    # Pull request                                                         #
    # ------------------------------------------------------------------ #

    async def get_pull_request(self, pr_number: int) -> PullRequestDetails:
        return await asyncio.to_thread(self._get_pull_request, pr_number)

    async def get_pull_request_payload(self, pr_number: int) -> dict:
        """Raw pull request JSON with its changed files attached under ``files``."""
        return await asyncio.to_thread(self._get_pull_request_payload, pr_number)

    async def list_open_pull_requests(self) -> list[PullRequestDetails]:
        return await asyncio.to_thread(self._list_open_pull_requests)

    async def list_files(self, pr_number: int) -> list[ChangedFile]:
        return await asyncio.to_thread(self._list_files, pr_number)

    async def compare_files(self, base_sha: str, head_sha: str) -> list[ChangedFile]:
        """Files changed between two commits, via the compare API."""
        return await asyncio.to_thread(self._compare_files, base_sha, head_sha)

    async def get_file_content(self, path: str, ref: str) -> str | None:
        """File text at ``ref``, or None when the path does not exist there."""
        return await asyncio.to_thread(self._get_file_content, path, ref)

    # ------------------------------------------------------------------ #
    # Paginated listings                                                   #
    # ------------------------------------------------------------------ #

    async def list_reviews_page(self, pr_number: int, page: int) -> Page:
        return await asyncio.to_thread(self._get_page, f"{self._pull_path(pr_number)}/reviews", page)

    async def list_review_comments_page(self, pr_number: int, review_id: int, page: int) -> Page:
        path = f"{self._pull_path(pr_number)}/reviews/{review_id}/comments"
        return await asyncio.to_thread(self._get_page, path, page)

    async def list_commits_page(self, pr_number: int, page: int) -> Page:
        return await asyncio.to_thread(self._get_page, f"{self._pull_path(pr_number)}/commits", page)

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    async def create_review(self, pr_number: int, body: str, event: str, comments: list[dict]) -> dict:
        payload = {"body": body, "event": event, "comments": comments}
        return await asyncio.to_thread(self._post, f"{self._pull_path(pr_number)}/reviews", payload)

    # ------------------------------------------------------------------ #
    # Blocking helpers, run inside worker threads                          #
    # ------------------------------------------------------------------ #

    def _repo(self):
        return self._client.get_repo(self.repo_name, lazy=True)

    def _pull_path(self, pr_number: int) -> str:
        return f"/repos/{self.owner}/{self.name}/pulls/{pr_number}"

    def _to_details(self, pr) -> PullRequestDetails:
        return PullRequestDetails(
            owner=self.owner,
            repo=self.name,
            number=pr.number,
            title=pr.title or "",
            description=pr.body or "",
            base_sha=pr.base.sha,
            head_sha=pr.head.sha,
            draft=bool(pr.draft),
        )

    def _get_pull_request(self, pr_number: int) -> PullRequestDetails:
        return self._to_details(self._repo().get_pull(pr_number))

    def _get_pull_request_payload(self, pr_number: int) -> dict:
        pr = self._repo().get_pull(pr_number)
        return {**pr.raw_data, "files": [f.raw_data for f in pr.get_files()]}

    def _list_open_pull_requests(self) -> list[PullRequestDetails]:
        return [self._to_details(pr) for pr in self._repo().get_pulls(state="open")]

    def _list_files(self, pr_number: int) -> list[ChangedFile]:
        pr = self._repo().get_pull(pr_number)
        return [ChangedFile(path=f.filename, patch=f.patch or "", status=f.status) for f in pr.get_files()]

    def _compare_files(self, base_sha: str, head_sha: str) -> list[ChangedFile]:
        comparison = self._repo().compare(base_sha, head_sha)
        return [ChangedFile(path=f.filename, patch=f.patch or "", status=f.status) for f in comparison.files]

    def _get_file_content(self, path: str, ref: str) -> str | None:
        try:
            contents = self._repo().get_contents(path, ref=ref)
        except UnknownObjectException:
            logger.debug("No content for %s at %s", path, ref)
            return None
        if isinstance(contents, list):
            # A directory listing, not a file.
            return None
        return contents.decoded_content.decode("utf-8", errors="replace")

    def _get_page(self, path: str, page: int) -> Page:
        headers, data = self._client.requester.requestJsonAndCheck(
            "GET", path, parameters={"per_page": self.per_page, "page": page}
        )
        link = headers.get("link") or headers.get("Link")
        return Page(items=list(data or []), cursor=PageCursor.from_link_header(page, link))

    def _post(self, path: str, payload: dict) -> dict:
        _, data = self._client.requester.requestJsonAndCheck("POST", path, input=payload)
        return data or {}
