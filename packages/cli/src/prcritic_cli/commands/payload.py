"""payload command: save a webhook-style pull request payload for local end-to-end runs."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
from github import GithubException
from rich.console import Console

from prcritic_core.gh.pull_request import GitHubPlatform

console = Console()


def build_payload(owner: str, repo: str, pr_number: int, pull_request: dict) -> dict:
    """Shape a pull request the way a ``pull_request`` webhook event delivers it."""
    return {
        "action": "opened",
        "pull_request": pull_request,
        "repository": {"name": repo, "full_name": f"{owner}/{repo}", "owner": {"login": owner}},
        "number": pr_number,
    }


@click.command("payload")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Defaults to $GITHUB_REPOSITORY.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--output",
    "-o",
    "output_path",
    default=None,
    help="Where to write the payload. Defaults to pull-requests/test-pr-payload-<pr>.json.",
)
def payload_cmd(repo: str | None, pr_number: int, output_path: str | None):
    """Fetch a pull request with its changed files and save it as an event payload."""
    from prcritic_cli.auth import resolve_github_token, resolve_repository

    repo = resolve_repository(repo)
    if not repo:
        raise click.UsageError("No repository given. Pass --repo owner/name or set GITHUB_REPOSITORY.")

    token = resolve_github_token()
    if not token:
        console.print("[yellow]No GitHub token found; unauthenticated requests are heavily rate-limited.[/yellow]")

    platform = GitHubPlatform(repo, token=token)
    try:
        pull_request = asyncio.run(platform.get_pull_request_payload(pr_number))
    except GithubException as e:
        raise click.ClickException(f"GitHub API error ({e.status}): {e.data}")

    payload = build_payload(platform.owner, platform.name, pr_number, pull_request)
    path = Path(output_path or f"pull-requests/test-pr-payload-{pr_number}.json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2))
    console.print(f"Payload saved to {path}")
