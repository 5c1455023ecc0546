"""review command: run AI review on a pull request."""

from __future__ import annotations

import asyncio

import click
from github import GithubException
from rich.console import Console

from prcritic_core.gh.pull_request import GitHubPlatform
from prcritic_core.reviewer import ReviewSummary, get_reviewer, run_review

console = Console()


def _report(summary: ReviewSummary) -> None:
    if summary.parse_failed:
        console.print("[red]The AI response could not be parsed.[/red]")
    head = summary.head_sha[:7]
    scope = f"{summary.base_sha[:7]} → {head}" if summary.base_sha else f"full @ {head}"
    console.print(
        f"[bold]{summary.repo}#{summary.pr_number}[/bold] ({scope}): "
        f"{len(summary.reviewed_files)} file(s) reviewed, {len(summary.skipped_files)} skipped, "
        f"{summary.total_comments} comment(s), event {summary.event}"
        + ("" if summary.posted else " [dim](not posted)[/dim]")
    )


@click.command("review")
@click.option("--repo", default=None, help="GitHub repository in owner/name format. Defaults to $GITHUB_REPOSITORY.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Omit to list open PRs interactively.",
)
@click.option(
    "--provider",
    type=click.Choice(["gemini", "anthropic", "openai"]),
    default=None,
    help="AI provider. Overrides config file.",
)
@click.option("--model", default=None, help="Model name for the provider. Overrides config file.")
@click.option(
    "--guidelines",
    "guidelines_path",
    default=None,
    help="Path to a Markdown guidelines file. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the review without posting to GitHub.",
)
@click.option(
    "--full-review",
    "full_review",
    is_flag=True,
    help="Review every changed file even if an earlier review exists.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str | None,
    pr_number: int | None,
    provider: str | None,
    model: str | None,
    guidelines_path: str | None,
    shadow: bool,
    full_review: bool,
):
    """Review a pull request with Gemini, Claude or GPT and post the result.

    On re-runs only the commits pushed since the last automation review are
    sent to the model, together with what that review already said.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      GEMINI_API_KEY       Required when using --provider gemini
      ANTHROPIC_API_KEY    Required when using --provider anthropic
      OPENAI_API_KEY       Required when using --provider openai
    """
    from prcritic_cli.auth import resolve_github_token, resolve_repository
    from prcritic_core.config import api_key_env_var, load_config

    config = load_config(
        ctx.obj["config_path"],
        cli_overrides={"provider": provider, "model": model, "guidelines": guidelines_path},
    )

    repo = resolve_repository(repo)
    if not repo:
        raise click.UsageError("No repository given. Pass --repo owner/name or set GITHUB_REPOSITORY.")

    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config["github_token"] = token

    try:
        key_var = api_key_env_var(config["provider"])
    except ValueError as e:
        raise click.UsageError(str(e))
    if not config.get(f"{config['provider']}_api_key"):
        raise click.UsageError(f"{key_var} environment variable is not set.")

    platform = GitHubPlatform(repo, token=token, per_page=config["per_page"])

    if pr_number is None:
        prs = asyncio.run(platform.list_open_pull_requests())
        if not prs:
            console.print("[yellow]No open pull requests found.[/yellow]")
            return
        console.print("\nOpen pull requests:")
        for pr in prs:
            console.print(f"  [bold]#{pr.number}[/bold]  {pr.title}")
        pr_number = click.prompt("\nEnter the pull request number", type=int)

    try:
        reviewer = get_reviewer(config)
    except (ImportError, FileNotFoundError, ValueError) as e:
        raise click.UsageError(str(e))

    try:
        summary = asyncio.run(
            run_review(
                platform=platform,
                reviewer=reviewer,
                pr_number=pr_number,
                config=config,
                shadow=shadow,
                force_full=full_review,
            )
        )
    except ValueError as e:
        raise click.ClickException(str(e))
    except GithubException as e:
        raise click.ClickException(f"GitHub API error ({e.status}): {e.data}")

    if summary is not None:
        _report(summary)
