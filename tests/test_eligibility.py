"""Tests for the eligibility filter (gates, label pre-filter, ordering)."""

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from stagebot.adapters.base import GitPlatformAdapter, GitPlatformError
from stagebot.models import PR, CheckResult, Review
from stagebot.services.eligibility import (
    count_approvals,
    enrich_candidates,
    fetch_eligible,
    has_failing_checks,
    is_eligible,
)


def _pr(number: int, labels: list[str], day: int) -> PR:
    return PR(
        number=number,
        title=f"PR {number}",
        html_url=f"https://github.com/owner/repo/pull/{number}",
        base_branch="stage",
        head_sha=f"sha{number}",
        labels=labels,
        created_at=datetime(2024, 1, day, tzinfo=UTC),
    )


def _adapter(prs: list[PR], reviews: dict[int, int], checks: dict[str, list[CheckResult]] | None = None) -> Mock:
    """Adapter listing prs; reviews maps PR number to approval count."""
    adapter = Mock(spec=GitPlatformAdapter)
    adapter.list_pull_requests.return_value = prs
    adapter.list_pr_files.side_effect = lambda repo, number: [f"src/{number}.js"]
    adapter.list_check_runs.side_effect = lambda repo, ref: (checks or {}).get(ref, [])
    adapter.list_reviews.side_effect = lambda repo, number: [
        Review(reviewer=f"r{i}", state="APPROVED") for i in range(reviews.get(number, 0))
    ]
    return adapter


class TestGates:
    def test_failing_check_detected(self) -> None:
        checks = [CheckResult(name="lint", conclusion="failure")]
        assert has_failing_checks(checks, "merge-to-stage")

    def test_own_check_failure_is_exempt(self) -> None:
        """The automation's own check never blocks a merge."""
        checks = [
            CheckResult(name="merge-to-stage", conclusion="failure"),
            CheckResult(name="lint", conclusion="success"),
        ]
        assert not has_failing_checks(checks, "merge-to-stage")

    def test_pending_and_neutral_checks_do_not_fail(self) -> None:
        checks = [CheckResult(name="build", conclusion=None), CheckResult(name="a11y", conclusion="neutral")]
        assert not has_failing_checks(checks, "merge-to-stage")

    def test_count_approvals_ignores_other_states(self) -> None:
        reviews = [
            Review(reviewer="a", state="APPROVED"),
            Review(reviewer="b", state="COMMENTED"),
            Review(reviewer="c", state="CHANGES_REQUESTED"),
            Review(reviewer="d", state="APPROVED"),
        ]
        assert count_approvals(reviews) == 2

    def test_failing_check_excluded_regardless_of_approvals(self, config, make_candidate) -> None:
        pr = make_candidate(1, approvals=5, checks=[CheckResult(name="unit", conclusion="failure")])
        assert not is_eligible(pr, config)

    def test_insufficient_approvals_excluded(self, config, make_candidate) -> None:
        assert not is_eligible(make_candidate(1, approvals=1), config)
        assert is_eligible(make_candidate(2, approvals=2), config)

    def test_threshold_is_configurable(self, config, make_candidate) -> None:
        config.pipeline.required_approvals = 0
        assert is_eligible(make_candidate(1, approvals=0), config)

    def test_missing_auxiliary_data_not_admitted(self, config, make_candidate) -> None:
        """A candidate without fetched files, checks or reviews never passes."""
        pr = make_candidate(1)
        pr.reviews = None
        assert not pr.is_enriched
        assert not is_eligible(pr, config)

    def test_rejection_is_logged(self, config, make_candidate, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("INFO", logger="stagebot.eligibility"):
            is_eligible(make_candidate(11, approvals=1), config)
        assert "Skipping 11: PR 11 due to insufficient approvals" in caplog.text


class TestFetchEligible:
    def test_example_insufficient_approvals(self, config) -> None:
        """#10 (old, 2 approvals) is eligible; #11 (new, 1 approval) is not."""
        ready = ["Ready for Stage"]
        adapter = _adapter([_pr(11, ready, 5), _pr(10, ready, 1)], reviews={10: 2, 11: 1})

        eligible = fetch_eligible(adapter, "owner/repo", config)

        assert [c.number for c in eligible] == [10]
        adapter.list_pull_requests.assert_called_once_with("owner/repo", base="stage")

    def test_only_ready_label_is_enriched(self, config) -> None:
        """PRs without the ready label cost no further API calls."""
        adapter = _adapter([_pr(1, ["WIP"], 1), _pr(2, ["Ready for Stage"], 2)], reviews={1: 2, 2: 2})

        eligible = fetch_eligible(adapter, "owner/repo", config)

        assert [c.number for c in eligible] == [2]
        adapter.list_pr_files.assert_called_once_with("owner/repo", 2)
        adapter.list_reviews.assert_called_once_with("owner/repo", 2)
        adapter.list_check_runs.assert_called_once_with("owner/repo", "sha2")

    def test_oldest_first(self, config) -> None:
        """Platform returns newest first; eligible list is oldest first."""
        ready = ["Ready for Stage"]
        adapter = _adapter(
            [_pr(30, ready, 9), _pr(20, ready, 5), _pr(25, ready, 2)],
            reviews={20: 2, 25: 2, 30: 2},
        )

        eligible = fetch_eligible(adapter, "owner/repo", config)

        assert [c.number for c in eligible] == [25, 20, 30]
        assert eligible[0].files == ["src/25.js"]

    def test_failing_checks_filtered(self, config) -> None:
        ready = ["Ready for Stage"]
        adapter = _adapter(
            [_pr(1, ready, 1), _pr(2, ready, 2)],
            reviews={1: 3, 2: 3},
            checks={"sha1": [CheckResult(name="unit", conclusion="failure")]},
        )

        assert [c.number for c in fetch_eligible(adapter, "owner/repo", config)] == [2]

    def test_api_error_propagates(self, config) -> None:
        """A failed fetch is fatal for the run, not a silent exclusion."""
        adapter = _adapter([_pr(1, ["Ready for Stage"], 1)], reviews={1: 2})
        adapter.list_pr_files.side_effect = GitPlatformError("502: Bad Gateway")

        with pytest.raises(GitPlatformError):
            fetch_eligible(adapter, "owner/repo", config)


def test_enrich_candidates_attaches_everything(make_candidate) -> None:
    candidates = [make_candidate(1), make_candidate(2)]
    for c in candidates:
        c.files = c.checks = c.reviews = None
    adapter = _adapter([], reviews={1: 1, 2: 2})

    enrich_candidates(adapter, "owner/repo", candidates, max_workers=2)

    assert all(c.is_enriched for c in candidates)
    assert [count_approvals(c.reviews or []) for c in candidates] == [1, 2]
    assert candidates[1].files == ["src/2.js"]


def test_enrich_candidates_empty_makes_no_calls() -> None:
    adapter = _adapter([], reviews={})
    enrich_candidates(adapter, "owner/repo", [])
    adapter.list_pr_files.assert_not_called()
