"""history command: show the automation review history reconstructed from GitHub."""

from __future__ import annotations

import asyncio

import click
from github import GithubException
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prcritic_core.gh.history import ReviewHistoryResolver
from prcritic_core.gh.pull_request import GitHubPlatform

console = Console()


@click.command("history")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Defaults to $GITHUB_REPOSITORY.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--bot-login", default=None, help="Account whose reviews count as automation reviews.")
@click.pass_context
def history_cmd(ctx, repo: str | None, pr_number: int, bot_login: str | None):
    """Show what the automation has already reviewed on a pull request.

    Everything is read from GitHub's review list; no local state is kept.
    """
    from prcritic_cli.auth import resolve_github_token, resolve_repository
    from prcritic_core.config import load_config

    config = load_config(ctx.obj["config_path"], cli_overrides={"bot_login": bot_login})
    repo = resolve_repository(repo)
    if not repo:
        raise click.UsageError("No repository given. Pass --repo owner/name or set GITHUB_REPOSITORY.")

    platform = GitHubPlatform(repo, token=resolve_github_token(), per_page=config["per_page"])
    resolver = ReviewHistoryResolver(
        platform, bot_login=config["bot_login"], max_concurrency=config["max_concurrency"]
    )
    try:
        history = asyncio.run(resolver.resolve(pr_number))
    except GithubException as e:
        raise click.ClickException(f"GitHub API error ({e.status}): {e.data}")

    if not history.previous_reviews and history.last_review_at is None:
        console.print(f"[yellow]No reviews by {escape(config['bot_login'])} found on #{pr_number}.[/yellow]")
        return

    last_at = history.last_review_at.isoformat()[:19].replace("T", " ") if history.last_review_at else "-"
    console.print(f"Last automation review: [bold]{last_at}[/bold]")
    commit = history.last_reviewed_commit[:7] if history.last_reviewed_commit else "- (full re-review)"
    console.print(f"Last reviewed commit:   [bold]{commit}[/bold]\n")

    table = Table(title=f"Automation reviews for {repo}#{pr_number}", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", width=4)
    table.add_column("Commit", width=8)
    table.add_column("Summary", max_width=60)
    table.add_column("Comments", justify="right", width=10)

    for i, record in enumerate(history.previous_reviews, 1):
        first_line = record.summary.strip().splitlines()[0] if record.summary.strip() else ""
        table.add_row(
            str(i),
            record.commit_id[:7] if record.commit_id else "-",
            escape(first_line[:60]),
            str(len(record.line_comments)),
        )

    console.print(table)
