"""Data models for candidate pull requests, the sync PR, checks and reviews (Pydantic)."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class CheckResult(BaseModel):
    """Check run reported on a pull request head commit."""

    name: str
    conclusion: str | None = None


class Review(BaseModel):
    """Pull request review."""

    reviewer: str = ""
    state: str


class PullRequestCandidate(BaseModel):
    """Open pull request targeting the staging branch.

    files, checks and reviews stay None until fetched; a candidate
    without them must not be admitted for merge.
    """

    number: int
    title: str
    html_url: str
    base_branch: str
    head_sha: str = ""
    labels: List[str] = Field(default_factory=list)
    files: List[str] | None = None
    checks: List[CheckResult] | None = None
    reviews: List[Review] | None = None
    created_at: datetime

    @property
    def is_enriched(self) -> bool:
        """True once files, checks and reviews are all attached."""
        return self.files is not None and self.checks is not None and self.reviews is not None


class SyncPullRequest(BaseModel):
    """The rolling stage -> main pull request."""

    number: int
    title: str
    html_url: str
    body: str = ""
    labels: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)


class Commit(BaseModel):
    """Commit from a branch comparison."""

    sha: str
    message: str = ""


class PR(BaseModel):
    """Pull request as listed by the hosting platform."""

    number: int
    title: str
    body: str = ""
    html_url: str
    base_branch: str = ""
    head_branch: str = ""
    head_sha: str = ""
    state: str = "open"
    labels: List[str] = Field(default_factory=list)
    created_at: datetime | None = None
