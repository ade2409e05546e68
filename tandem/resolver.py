"""Version resolution: turn release candidates into a :class:`ReleasePlan`.

Exactly one strategy runs per release, picked by precedence:

1. REPO_VERSION  — an explicit version for every package (fixed mode)
2. CANARY        — ``<next>-<suffix>.<sha>``, never committed
3. INCREMENT     — an explicit increment keyword
4. CONVENTIONAL  — recommendations from commit history
5. INTERACTIVE   — ask on the terminal

Each strategy is a plain function from a :class:`ResolveContext` to a plan;
the dispatch table maps the selected :class:`Strategy` to its function.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .backends import Prompter
from .conventional import ConventionalCommitsAdapter, highest_bump
from .errors import ValidationError
from .graph import PackageGraph
from .models import Choice, ReleaseMode, ReleasePlan
from .options import ReleaseOptions
from .shell import step
from .versions import canary_version, increment, is_valid

CUSTOM = "__custom__"
DEFAULT_CANARY_SUFFIX = "alpha"


class Strategy(str, Enum):
    REPO_VERSION = "repo-version"
    CANARY = "canary"
    INCREMENT = "increment"
    CONVENTIONAL = "conventional-commits"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class ResolveContext:
    """Everything a strategy may look at.

    Attributes:
        graph: The workspace package graph.
        candidates: Names to release, dependencies first.
        options: Validated release options.
        mode: Fixed or independent.
        repo_version: Current shared version (fixed mode).
        commit_hash: HEAD sha, needed by canary releases.
        prompter: Terminal prompts for interactive selection.
        adapter: Conventional-commits collaborator.
    """

    graph: PackageGraph
    candidates: list[str]
    options: ReleaseOptions
    mode: ReleaseMode
    repo_version: str = "0.0.0"
    commit_hash: str = ""
    prompter: Prompter | None = None
    adapter: ConventionalCommitsAdapter | None = None

    @property
    def fixed(self) -> bool:
        return self.mode is ReleaseMode.FIXED

    def previous(self) -> dict[str, str]:
        return {name: self.graph[name].version for name in self.candidates}

    def plan(
        self,
        strategy: Strategy,
        versions: dict[str, str],
        repo_version: str | None = None,
        meta_suffix: str | None = None,
    ) -> ReleasePlan:
        return ReleasePlan(
            mode=self.mode,
            strategy=strategy.value,
            versions=versions,
            previous=self.previous(),
            repo_version=repo_version if self.fixed else None,
            meta_suffix=meta_suffix,
        )


def select_strategy(options: ReleaseOptions) -> Strategy:
    """Pick the strategy by precedence.

    Canary outranks a bare increment keyword because, combined with canary,
    the keyword only chooses the canary base.
    """
    if options.repo_version is not None:
        return Strategy.REPO_VERSION
    if options.canary is not None:
        return Strategy.CANARY
    if options.cd_version is not None:
        return Strategy.INCREMENT
    if options.conventional_commits:
        return Strategy.CONVENTIONAL
    return Strategy.INTERACTIVE


def _repo_version_strategy(ctx: ResolveContext) -> ReleasePlan:
    version = ctx.options.repo_version
    assert version is not None
    return ctx.plan(
        Strategy.REPO_VERSION,
        {name: version for name in ctx.candidates},
        repo_version=version,
    )


def _canary_strategy(ctx: ResolveContext) -> ReleasePlan:
    suffix = ctx.options.canary or DEFAULT_CANARY_SUFFIX
    keyword = ctx.options.cd_version
    versions = {
        name: canary_version(ctx.graph[name].version, keyword, suffix, ctx.commit_hash)
        for name in ctx.candidates
    }
    repo = canary_version(ctx.repo_version, keyword, suffix, ctx.commit_hash)
    return ctx.plan(Strategy.CANARY, versions, repo_version=repo, meta_suffix=suffix)


def _increment_strategy(ctx: ResolveContext) -> ReleasePlan:
    keyword = ctx.options.cd_version
    preid = ctx.options.preid
    assert keyword is not None
    if ctx.fixed:
        version = increment(ctx.repo_version, keyword, preid)
        return ctx.plan(
            Strategy.INCREMENT,
            {name: version for name in ctx.candidates},
            repo_version=version,
        )
    versions = {
        name: increment(ctx.graph[name].version, keyword, preid)
        for name in ctx.candidates
    }
    return ctx.plan(Strategy.INCREMENT, versions)


def _conventional_strategy(ctx: ResolveContext) -> ReleasePlan:
    if ctx.adapter is None:
        raise ValidationError("--conventional-commits needs a changelog adapter")
    if ctx.fixed:
        # The largest bump among candidates moves the shared version once.
        bump = highest_bump(
            ctx.adapter.recommend_bump(ctx.graph[name]) for name in ctx.candidates
        )
        version = increment(ctx.repo_version, bump)
        return ctx.plan(
            Strategy.CONVENTIONAL,
            {name: version for name in ctx.candidates},
            repo_version=version,
        )
    recommended = {
        name: ctx.adapter.recommend_version(ctx.graph[name]) for name in ctx.candidates
    }
    return ctx.plan(Strategy.CONVENTIONAL, recommended)


def version_choices(current: str, preid: str | None = None) -> list[Choice]:
    """The options offered when prompting for a version."""
    patch = increment(current, "patch")
    minor = increment(current, "minor")
    major = increment(current, "major")
    prerelease = increment(current, "prerelease", preid)
    return [
        Choice(label=f"Patch ({patch})", value=patch),
        Choice(label=f"Minor ({minor})", value=minor),
        Choice(label=f"Major ({major})", value=major),
        Choice(label=f"Prerelease ({prerelease})", value=prerelease),
        Choice(label="Custom", value=CUSTOM),
    ]


def prompt_version(
    prompter: Prompter, message: str, current: str, preid: str | None
) -> str:
    """Ask for one version, following up with a free-text prompt for Custom.

    Raises:
        ValidationError: If a custom version is not valid semver.
    """
    picked = prompter.select_one(message, version_choices(current, preid))
    if picked != CUSTOM:
        return picked
    custom = prompter.ask("Enter a custom version")
    if not is_valid(custom):
        raise ValidationError(f"'{custom}' is not a valid semver version")
    return custom


def _interactive_strategy(ctx: ResolveContext) -> ReleasePlan:
    if ctx.prompter is None:
        raise ValidationError("Choosing versions interactively needs a prompt")
    preid = ctx.options.preid
    if ctx.fixed:
        version = prompt_version(
            ctx.prompter,
            f"Select a new version (currently {ctx.repo_version})",
            ctx.repo_version,
            preid,
        )
        return ctx.plan(
            Strategy.INTERACTIVE,
            {name: version for name in ctx.candidates},
            repo_version=version,
        )
    versions: dict[str, str] = {}
    for name in ctx.candidates:
        current = ctx.graph[name].version
        versions[name] = prompt_version(
            ctx.prompter,
            f"Select a new version for {name} (currently {current})",
            current,
            preid,
        )
    return ctx.plan(Strategy.INTERACTIVE, versions)


STRATEGIES: dict[Strategy, Callable[[ResolveContext], ReleasePlan]] = {
    Strategy.REPO_VERSION: _repo_version_strategy,
    Strategy.CANARY: _canary_strategy,
    Strategy.INCREMENT: _increment_strategy,
    Strategy.CONVENTIONAL: _conventional_strategy,
    Strategy.INTERACTIVE: _interactive_strategy,
}


def resolve_versions(ctx: ResolveContext) -> ReleasePlan:
    """Compute the release plan with the strategy the options select."""
    strategy = select_strategy(ctx.options)
    step(f"Resolving versions ({strategy.value})")
    plan = STRATEGIES[strategy](ctx)
    for name, bump in plan.bumps.items():
        print(f"  {name}: {bump.old} => {bump.new}")
    return plan


def confirm_plan(plan: ReleasePlan, prompter: Prompter | None, yes: bool) -> bool:
    """Ask before any side effect; ``yes`` answers for the user."""
    if yes:
        return True
    if prompter is None:
        raise ValidationError("Confirming the release needs a prompt; pass --yes")
    noun = "package" if len(plan.versions) == 1 else "packages"
    count = len(plan.versions)
    return prompter.confirm(f"Are you sure you want to publish {count} {noun}?")
