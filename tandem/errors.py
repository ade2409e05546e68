"""Error taxonomy for tandem.

Every fatal condition in the release pipeline is raised as a subclass of
:class:`TandemError`. The CLI converts these into a one-line
``Error: <message>`` and a non-zero exit code; nothing below the CLI
catches them.

    TandemError
    ├── ValidationError         malformed or conflicting option values
    ├── WorkspaceError          missing tandem.toml, manifests, members
    ├── NothingToPublishError   no candidates after change detection
    ├── BranchRestrictionError  branch gate failure
    ├── VersionControlError     any git failure
    ├── RegistryError           publish / dist-tag failure
    ├── LifecycleScriptError    preversion/version/postversion failed
    └── InvalidTransitionError  git state machine misuse
"""

from __future__ import annotations


class TandemError(Exception):
    """Base class for all fatal release errors."""


class ValidationError(TandemError):
    """An option value is malformed or conflicts with the workspace.

    Always raised before any side effect takes place.
    """


class WorkspaceError(TandemError):
    """The workspace layout cannot be read."""


class NothingToPublishError(TandemError):
    """Change detection produced no release candidates."""


class BranchRestrictionError(TandemError):
    """The current branch is not allowed to publish."""

    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(f"Branch '{branch}' is restricted from publishing")


class VersionControlError(TandemError):
    """A git operation failed.

    Disk writes made before the failure are kept as they are.
    """


class RegistryError(TandemError):
    """A registry publish or dist-tag operation failed.

    Packages already published in the same batch are not retracted.
    """


class LifecycleScriptError(TandemError):
    """A version lifecycle script exited non-zero."""

    def __init__(self, script: str, package: str, detail: str = "") -> None:
        self.script = script
        self.package = package
        self.detail = detail
        message = f"Lifecycle script '{script}' failed in {package}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidTransitionError(TandemError):
    """A git release transition was requested from the wrong state."""
