"""Git platform adapters."""

from stagebot.adapters.base import GitPlatformAdapter, GitPlatformError
from stagebot.adapters.github import GitHubAdapter

__all__ = ["GitPlatformAdapter", "GitPlatformError", "GitHubAdapter"]
