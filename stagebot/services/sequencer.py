"""Conflict-aware merge sequencer.

Candidates are merged one at a time. Each run keeps a ClaimedFileSet:
a candidate touching a path already claimed is skipped for the rest of
the run, otherwise its files are claimed before the merge call, so a
failed merge still blocks later candidates that overlap it.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Sequence, Set, Tuple

from stagebot.adapters.base import GitPlatformAdapter
from stagebot.config import AppConfig
from stagebot.models import PullRequestCandidate
from stagebot.notifications import SlackNotifier, format_merged
from stagebot.services.description import SyncDescription

LOG = logging.getLogger("stagebot.sequencer")


class ClaimedFileSet:
    """File paths already committed to a merge decision in this run."""

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self._paths: Set[str] = set(paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def conflicts(self, files: Iterable[str]) -> List[str]:
        """Claimed paths among files, sorted."""
        return sorted(self._paths.intersection(files))

    def claim(self, files: Iterable[str]) -> None:
        self._paths.update(files)


@dataclass
class MergeReport:
    """Outcome of one or more merge passes (PR numbers)."""

    merged: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    def extend(self, other: "MergeReport") -> None:
        self.merged.extend(other.merged)
        self.skipped.extend(other.skipped)
        self.failed.extend(other.failed)


def is_high_priority(candidate: PullRequestCandidate, label: str) -> bool:
    return label in candidate.labels


def split_by_priority(
    candidates: Sequence[PullRequestCandidate],
    label: str,
) -> Tuple[List[PullRequestCandidate], List[PullRequestCandidate]]:
    """(high priority, rest), each keeping the incoming order."""
    high = [c for c in candidates if is_high_priority(c, label)]
    rest = [c for c in candidates if not is_high_priority(c, label)]
    return high, rest


def merge_candidates(
    adapter: GitPlatformAdapter,
    repo: str,
    candidates: Sequence[PullRequestCandidate],
    claimed: ClaimedFileSet,
    description: SyncDescription,
    notifier: SlackNotifier,
    config: AppConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> MergeReport:
    """Merge candidates in order, skipping file conflicts and surviving failures.

    Merged PR URLs are prepended to description. With pipeline.local_run
    the merge API call is skipped and everything else still happens.
    """
    report = MergeReport()
    LOG.info("Merging %s PRs that are ready...", len(candidates))
    for pr in candidates:
        files = pr.files or []
        overlap = claimed.conflicts(files)
        if overlap:
            LOG.info("Skipping %s: %s due to overlap in files: %s", pr.number, pr.title, ", ".join(overlap))
            report.skipped.append(pr.number)
            continue
        claimed.claim(files)
        try:
            if config.pipeline.local_run:
                LOG.info("Local run: not merging %s: %s", pr.number, pr.title)
            else:
                adapter.merge_pr(repo, pr.number, merge_method=config.pipeline.merge_method)
        except Exception as e:
            LOG.error("Error merging %s: %s %s", pr.number, pr.title, e)
            report.failed.append(pr.number)
            continue
        LOG.info("Merged %s: %s", pr.number, pr.title)
        report.merged.append(pr.number)
        description.add(pr.html_url)
        notifier.send(format_merged(pr))
        sleep(config.pipeline.merge_delay_seconds)
    return report


def merge_by_priority(
    adapter: GitPlatformAdapter,
    repo: str,
    candidates: Sequence[PullRequestCandidate],
    claimed: ClaimedFileSet,
    description: SyncDescription,
    notifier: SlackNotifier,
    config: AppConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> MergeReport:
    """High-priority pass, then the rest, sharing one ClaimedFileSet."""
    high, rest = split_by_priority(candidates, config.labels.high_priority)
    report = MergeReport()
    for batch in (high, rest):
        report.extend(merge_candidates(adapter, repo, batch, claimed, description, notifier, config, sleep=sleep))
    return report
