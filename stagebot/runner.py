"""Run controller: one promotion pass over the repository.

Order: blackout check, sync PR lookup, testing-started halt, eligibility,
high-priority merges, remaining merges, then open or update the sync PR.
Nothing is kept between runs except what lives on the platform.
"""

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable

from stagebot.adapters.base import GitPlatformAdapter
from stagebot.blackout import is_within_blackout
from stagebot.config import AppConfig
from stagebot.notifications import SlackNotifier
from stagebot.services.description import SyncDescription
from stagebot.services.eligibility import fetch_eligible
from stagebot.services.sequencer import ClaimedFileSet, merge_by_priority
from stagebot.services.sync_pr import find_sync_pr, open_sync_pr, testing_started, update_sync_pr

LOG = logging.getLogger("stagebot.runner")


class RunOutcome(str, Enum):
    BLACKOUT = "blackout"
    TESTING_STARTED = "testing_started"
    COMPLETED = "completed"
    FAILED = "failed"


def run_once(
    adapter: GitPlatformAdapter,
    repo: str,
    config: AppConfig,
    notifier: SlackNotifier,
    now: datetime | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunOutcome:
    """Run the promotion pipeline once. Never raises: errors are logged and reported as FAILED."""
    if is_within_blackout(config.blackout.windows, now=now, offset_days=config.blackout.offset_days):
        LOG.info("Stopped, within blackout period.")
        return RunOutcome.BLACKOUT

    try:
        sync_pr = find_sync_pr(adapter, repo, config)
        LOG.info("has Stage to Main PR: %s", sync_pr is not None)

        claimed = ClaimedFileSet()
        description = SyncDescription(sync_pr.body if sync_pr else config.pipeline.description_footer)
        if sync_pr is not None:
            if config.pipeline.claim_sync_pr_files:
                claimed.claim(sync_pr.files)
            if testing_started(sync_pr, config.labels.testing_started_prefix):
                LOG.info("PR exists & testing started. Stopping execution.")
                return RunOutcome.TESTING_STARTED

        eligible = fetch_eligible(adapter, repo, config)
        report = merge_by_priority(adapter, repo, eligible, claimed, description, notifier, config, sleep=sleep)

        if sync_pr is None:
            open_sync_pr(adapter, repo, description, notifier, config)
        else:
            update_sync_pr(adapter, repo, sync_pr, description)

        LOG.info(
            "Process successfully executed | merged=%s | skipped=%s | failed=%s",
            report.merged,
            report.skipped,
            report.failed,
        )
        return RunOutcome.COMPLETED
    except Exception as e:
        LOG.exception("Run failed: %s", e)
        return RunOutcome.FAILED
