"""Release options: defaults, persisted configuration and validation.

Options come from three layers, highest precedence first:

1. Values given on the command line.
2. Persisted defaults under ``[publish]`` in tandem.toml.
3. The field defaults of :class:`ReleaseOptions`.

A layer only counts when it actually provides a value, and list options
replace the lower layer entirely instead of merging with it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic
import tomlkit
from pydantic import BaseModel, ConfigDict, Field

from .conventional import PRESETS
from .errors import ValidationError
from .models import ReleaseMode
from .toml import get_publish_defaults, get_repo_version, is_independent
from .versions import BUMP_KEYWORDS, is_valid


class ReleaseOptions(BaseModel):
    """Every recognised release option."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    independent: bool = False
    canary: str | None = None
    cd_version: str | None = None
    preid: str | None = None
    repo_version: str | None = None
    conventional_commits: bool = False
    changelog_preset: str | None = None
    exact: bool = False
    yes: bool = False
    skip_git: bool = False
    skip_npm: bool = False
    temp_tag: bool = False
    npm_tag: str | None = None
    registry: str | None = None
    git_remote: str = "origin"
    message: str | None = None
    ignore: tuple[str, ...] = ()
    allow_branch: tuple[str, ...] = ()
    force_publish: bool = False
    concurrency: int = Field(default=4, ge=1)


def cd_version_message() -> str:
    """The error listing every accepted increment keyword."""
    quoted = [f"'{kw}'" for kw in BUMP_KEYWORDS]
    return f"--cd-version must be one of: {', '.join(quoted[:-1])}, or {quoted[-1]}."


def _provided(value: Any) -> bool:
    return value is not None and value is not False and value != () and value != []


def merge_options(
    cli_values: Mapping[str, Any], defaults: Mapping[str, Any]
) -> dict[str, Any]:
    """Layer CLI values over persisted defaults.

    Raises:
        ValidationError: If ``defaults`` holds a key that is not an option.
    """
    unknown = sorted(set(defaults) - set(ReleaseOptions.model_fields))
    if unknown:
        keys = ", ".join(k.replace("_", "-") for k in unknown)
        raise ValidationError(f"Unknown option(s) in [publish]: {keys}")

    merged: dict[str, Any] = {}
    for field in ReleaseOptions.model_fields:
        cli_value = cli_values.get(field)
        if _provided(cli_value):
            merged[field] = cli_value
        elif field in defaults:
            merged[field] = defaults[field]
    for field in ("ignore", "allow_branch"):
        value = merged.get(field)
        if isinstance(value, str):
            merged[field] = (value,)
        elif value is not None:
            merged[field] = tuple(value)
    return merged


def validate_options(options: ReleaseOptions, record: tomlkit.TOMLDocument) -> None:
    """Check option values against each other and the root record.

    Raises:
        ValidationError: On the first problem found.
    """
    if options.cd_version is not None and options.cd_version not in BUMP_KEYWORDS:
        raise ValidationError(cd_version_message())

    if options.independent and get_repo_version(record) is not None:
        raise ValidationError(
            "--independent was given but tandem.toml pins a fixed version "
            f"({get_repo_version(record)}). Set version = \"independent\" "
            "in tandem.toml to use independent mode."
        )

    mode = release_mode(options, record)
    if options.repo_version is not None:
        if mode is ReleaseMode.INDEPENDENT:
            raise ValidationError("--repo-version can only be used in fixed mode")
        if not is_valid(options.repo_version):
            raise ValidationError(
                f"--repo-version '{options.repo_version}' is not a valid semver version"
            )

    if options.canary is not None and not options.canary:
        raise ValidationError("--canary suffix must not be empty")

    if options.changelog_preset is not None and options.changelog_preset not in PRESETS:
        raise ValidationError(
            f"Unknown changelog preset '{options.changelog_preset}' "
            f"(available: {', '.join(sorted(PRESETS))})"
        )


def release_mode(options: ReleaseOptions, record: tomlkit.TOMLDocument) -> ReleaseMode:
    if options.independent or is_independent(record):
        return ReleaseMode.INDEPENDENT
    return ReleaseMode.FIXED


def resolve_options(
    cli_values: Mapping[str, Any], record: tomlkit.TOMLDocument
) -> ReleaseOptions:
    """Build validated options from CLI values and the root record.

    Raises:
        ValidationError: If any value is malformed or conflicting.
    """
    merged = merge_options(cli_values, get_publish_defaults(record))
    try:
        options = ReleaseOptions(**merged)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(f"Invalid options: {problems}") from exc
    validate_options(options, record)
    return options
