"""CLI entry point for tandem."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from .backends import ClickPrompter, GitCLI, NpmCLI
from .conventional import ConventionalChangelog
from .errors import TandemError
from .options import resolve_options
from .pipeline import changed_packages, run_release
from .workspace import discover_workspace


@click.group()
@click.version_option(package_name="tandem")
def cli() -> None:
    """Version and publish the packages of a JavaScript monorepo."""


@cli.command()
@click.option("--independent", is_flag=True, help="Version packages independently.")
@click.option(
    "--canary",
    is_flag=False,
    flag_value="alpha",
    default=None,
    metavar="[SUFFIX]",
    help="Publish an untracked prerelease: <next>-<suffix>.<sha>.",
)
@click.option("--cd-version", help="Increment keyword (major, minor, patch, ...).")
@click.option("--preid", help="Prerelease identifier for pre* increments.")
@click.option("--repo-version", help="Explicit version for every package.")
@click.option(
    "--conventional-commits",
    is_flag=True,
    help="Derive versions and changelogs from commit messages.",
)
@click.option("--changelog-preset", help="Changelog layout (angular, ...).")
@click.option("--exact", is_flag=True, help="Pin local dependencies exactly.")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.option("--skip-git", is_flag=True, help="Do not commit, tag or push.")
@click.option("--skip-npm", is_flag=True, help="Do not publish to the registry.")
@click.option("--temp-tag", is_flag=True, help="Publish under a temporary dist-tag.")
@click.option("--npm-tag", help="Dist-tag to publish under.")
@click.option("--registry", help="Registry URL.")
@click.option("--git-remote", help="Remote to push to.  [default: origin]")
@click.option(
    "-m", "--message", help="Commit message; %s and %v expand to the version."
)
@click.option("--ignore", multiple=True, help="Package to leave out (repeatable).")
@click.option(
    "--allow-branch", multiple=True, help="Branch allowed to publish (repeatable)."
)
@click.option("--force-publish", is_flag=True, help="Treat every package as changed.")
@click.option("--concurrency", type=int, help="Parallel publishes.  [default: 4]")
def publish(**cli_values: Any) -> None:
    """Bump versions, commit, tag, push and publish changed packages."""
    root = Path.cwd()
    try:
        workspace = discover_workspace(root)
        options = resolve_options(cli_values, workspace.record)
        run_release(
            options,
            workspace,
            vcs=GitCLI(root),
            registry=NpmCLI(options.registry),
            prompter=ClickPrompter(),
            adapter=ConventionalChangelog(root, options.changelog_preset),
        )
    except TandemError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.option("--ignore", multiple=True, help="Package to leave out (repeatable).")
@click.option("--force-publish", is_flag=True, help="Treat every package as changed.")
@click.option(
    "--cd-version", help="Increment keyword; plain ones sweep in prereleases."
)
@click.pass_context
def changed(ctx: click.Context, **cli_values: Any) -> None:
    """List the packages the next publish would release."""
    root = Path.cwd()
    try:
        workspace = discover_workspace(root)
        options = resolve_options(cli_values, workspace.record)
        names = changed_packages(options, workspace, GitCLI(root))
    except TandemError as exc:
        raise click.ClickException(str(exc)) from exc

    if not names:
        click.echo("No changed packages found", err=True)
        ctx.exit(1)
    for name in names:
        click.echo(f"{name} {workspace.graph[name].version}")
