"""Eligibility filter: which open stage pull requests may be merged.

Only pull requests labelled ready for stage are enriched with files,
checks and reviews; the gates then run in order and stop at the first
failure:

1. no failing check other than the automation's own check
2. at least ``required_approvals`` approved reviews

Survivors are returned oldest first.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Dict, List, Sequence

from stagebot.adapters.base import GitPlatformAdapter
from stagebot.config import AppConfig
from stagebot.models import PR, CheckResult, PullRequestCandidate, Review

LOG = logging.getLogger("stagebot.eligibility")

APPROVED = "APPROVED"
FAILURE = "failure"

_EPOCH = datetime.fromtimestamp(0, UTC)


def has_failing_checks(checks: Sequence[CheckResult], own_check_name: str) -> bool:
    """True if any check except own_check_name concluded with failure.

    The automation's own check is still running while it merges, so it
    can never report success first.
    """
    return any(c.conclusion == FAILURE and c.name != own_check_name for c in checks)


def count_approvals(reviews: Sequence[Review]) -> int:
    return sum(1 for r in reviews if r.state == APPROVED)


def is_eligible(candidate: PullRequestCandidate, config: AppConfig) -> bool:
    """Apply the merge gates to an enriched candidate, logging the reason on rejection."""
    if not candidate.is_enriched:
        LOG.info("Skipping %s: %s due to missing files, checks or reviews", candidate.number, candidate.title)
        return False
    if has_failing_checks(candidate.checks or [], config.pipeline.own_check_name):
        LOG.info("Skipping %s: %s due to failing checks", candidate.number, candidate.title)
        return False
    if count_approvals(candidate.reviews or []) < config.pipeline.required_approvals:
        LOG.info("Skipping %s: %s due to insufficient approvals", candidate.number, candidate.title)
        return False
    return True


def candidate_from_pr(pr: PR) -> PullRequestCandidate:
    return PullRequestCandidate(
        number=pr.number,
        title=pr.title,
        html_url=pr.html_url,
        base_branch=pr.base_branch,
        head_sha=pr.head_sha,
        labels=list(pr.labels),
        created_at=pr.created_at or _EPOCH,
    )


def enrich_candidates(
    adapter: GitPlatformAdapter,
    repo: str,
    candidates: Sequence[PullRequestCandidate],
    max_workers: int = 8,
) -> None:
    """Attach files, checks and reviews to every candidate, fetching concurrently.

    All requests finish before any candidate is touched; the first API
    error is re-raised.
    """
    if not candidates:
        return
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stagebot-fetch") as pool:
        files: Dict[int, Future[List[str]]] = {}
        checks: Dict[int, Future[List[CheckResult]]] = {}
        reviews: Dict[int, Future[List[Review]]] = {}
        for c in candidates:
            files[c.number] = pool.submit(adapter.list_pr_files, repo, c.number)
            checks[c.number] = pool.submit(adapter.list_check_runs, repo, c.head_sha)
            reviews[c.number] = pool.submit(adapter.list_reviews, repo, c.number)
    for c in candidates:
        c.files = files[c.number].result()
        c.checks = checks[c.number].result()
        c.reviews = reviews[c.number].result()


def fetch_eligible(adapter: GitPlatformAdapter, repo: str, config: AppConfig) -> List[PullRequestCandidate]:
    """Open pull requests against the stage branch that pass every gate, oldest first."""
    prs = adapter.list_pull_requests(repo, base=config.pipeline.stage_branch)
    ready_label = config.labels.ready_for_stage
    candidates = [candidate_from_pr(pr) for pr in prs if ready_label in pr.labels]
    LOG.info("%s open PRs against %s, %s labelled %r", len(prs), config.pipeline.stage_branch, len(candidates), ready_label)

    enrich_candidates(adapter, repo, candidates, max_workers=config.pipeline.fetch_workers)
    eligible = [c for c in candidates if is_eligible(c, config)]
    # oldest first; number breaks ties
    eligible.sort(key=lambda c: (c.created_at, c.number))
    return eligible
