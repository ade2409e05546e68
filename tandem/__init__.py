"""tandem: version resolution and publish orchestration for multi-package workspaces."""
