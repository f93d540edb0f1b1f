"""Shared fixtures: app config and candidate pull request factory."""

from datetime import UTC, datetime, timedelta
from typing import Callable

import pytest

from stagebot.config import AppConfig, PipelineConfig
from stagebot.models import CheckResult, PullRequestCandidate, Review

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        pipeline=PipelineConfig(required_approvals=2, local_run=False, team_mentions=["@org/qa", "@org/sot"]),
    )


@pytest.fixture
def make_candidate() -> Callable[..., PullRequestCandidate]:
    """Build an enriched candidate; age is hours after BASE_TIME (smaller is older)."""

    def _make(
        number: int,
        files: list[str] | None = None,
        labels: list[str] | None = None,
        approvals: int = 2,
        checks: list[CheckResult] | None = None,
        age: int | None = None,
    ) -> PullRequestCandidate:
        return PullRequestCandidate(
            number=number,
            title=f"PR {number}",
            html_url=f"https://github.com/owner/repo/pull/{number}",
            base_branch="stage",
            head_sha=f"sha{number}",
            labels=labels if labels is not None else ["Ready for Stage"],
            files=files if files is not None else [f"src/file_{number}.js"],
            checks=checks if checks is not None else [CheckResult(name="lint", conclusion="success")],
            reviews=[Review(reviewer=f"r{i}", state="APPROVED") for i in range(approvals)],
            created_at=BASE_TIME + timedelta(hours=age if age is not None else number),
        )

    return _make
