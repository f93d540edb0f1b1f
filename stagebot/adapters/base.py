"""Abstract base for Git platform adapters."""

from abc import ABC, abstractmethod
from typing import List

from stagebot.models import PR, CheckResult, Commit, Review


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails."""

    pass


class GitPlatformAdapter(ABC):
    """Abstract interface for Git hosting platforms.

    ``repo`` is always ``owner/name``.
    """

    @abstractmethod
    def list_pull_requests(self, repo: str, base: str, state: str = "open") -> List[PR]:
        """List pull requests targeting base, newest first."""
        ...

    @abstractmethod
    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        """Paths of files changed by a pull request."""
        ...

    @abstractmethod
    def list_check_runs(self, repo: str, ref: str) -> List[CheckResult]:
        """Check runs reported on a commit."""
        ...

    @abstractmethod
    def list_reviews(self, repo: str, pr_number: int) -> List[Review]:
        """Reviews submitted on a pull request."""
        ...

    @abstractmethod
    def merge_pr(self, repo: str, pr_number: int, merge_method: str = "squash") -> None:
        """Merge a pull request."""
        ...

    @abstractmethod
    def create_pr(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PR:
        """Create a pull request."""
        ...

    @abstractmethod
    def update_pr_body(self, repo: str, pr_number: int, body: str) -> None:
        """Replace the description of a pull request."""
        ...

    @abstractmethod
    def compare_commits(self, repo: str, base: str, head: str) -> List[Commit]:
        """Commits on head that are not on base."""
        ...

    @abstractmethod
    def list_prs_for_commit(self, repo: str, sha: str) -> List[PR]:
        """Pull requests associated with a commit."""
        ...

    @abstractmethod
    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        """Post a comment on an issue or pull request."""
        ...
