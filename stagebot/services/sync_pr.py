"""Sync PR reconciler: the single rolling stage -> main pull request.

Its body and labels are the only state that outlives a run. A label
starting with the testing-started prefix means people have taken over
and automation must stop.
"""

import logging
from typing import List

from stagebot.adapters.base import GitPlatformAdapter, GitPlatformError
from stagebot.config import AppConfig
from stagebot.models import PR, SyncPullRequest
from stagebot.notifications import SlackNotifier, format_opened_sync_pr
from stagebot.services.description import SyncDescription

LOG = logging.getLogger("stagebot.sync_pr")

TEMPLATE_TESTING_CAN_START = "Testing can start {mentions}"


def find_sync_pr(adapter: GitPlatformAdapter, repo: str, config: AppConfig) -> SyncPullRequest | None:
    """Open PR into the prod branch titled exactly like the sync PR, with its files."""
    prs = adapter.list_pull_requests(repo, base=config.pipeline.prod_branch)
    match = next((pr for pr in prs if pr.title == config.pipeline.sync_pr_title), None)
    if match is None:
        return None
    return SyncPullRequest(
        number=match.number,
        title=match.title,
        html_url=match.html_url,
        body=match.body,
        labels=list(match.labels),
        files=adapter.list_pr_files(repo, match.number),
    )


def testing_started(sync_pr: SyncPullRequest, prefix: str) -> bool:
    return any(label.startswith(prefix) for label in sync_pr.labels)


def collect_source_prs(adapter: GitPlatformAdapter, repo: str, config: AppConfig) -> List[PR]:
    """Pull requests behind every commit on stage that is not on prod, oldest commit first."""
    commits = adapter.compare_commits(repo, base=config.pipeline.prod_branch, head=config.pipeline.stage_branch)
    LOG.info("%s commits between %s and %s", len(commits), config.pipeline.prod_branch, config.pipeline.stage_branch)
    prs: List[PR] = []
    for commit in commits:
        prs.extend(adapter.list_prs_for_commit(repo, commit.sha))
    return prs


def format_testing_comment(mentions: List[str]) -> str:
    return TEMPLATE_TESTING_CAN_START.format(mentions=" ".join(mentions)).strip()


def open_sync_pr(
    adapter: GitPlatformAdapter,
    repo: str,
    description: SyncDescription,
    notifier: SlackNotifier,
    config: AppConfig,
) -> PR | None:
    """Create the sync PR listing every source PR; None when stage has nothing new.

    Posts the "testing can start" comment and the opened notification.
    """
    pipeline = config.pipeline
    added = description.add_all(pr.html_url for pr in collect_source_prs(adapter, repo, config))
    LOG.debug("Added %s source PRs to the description", added)

    no_commits = f"No commits between {pipeline.prod_branch} and {pipeline.stage_branch}"
    try:
        created = adapter.create_pr(
            repo,
            title=pipeline.sync_pr_title,
            body=description.body,
            head=pipeline.stage_branch,
            base=pipeline.prod_branch,
        )
    except GitPlatformError as e:
        if no_commits in str(e):
            LOG.info("No new commits, no %s->%s PR opened", pipeline.stage_branch, pipeline.prod_branch)
            return None
        raise

    LOG.info("Opened sync PR %s: %s", created.number, created.html_url)
    adapter.create_comment(repo, created.number, format_testing_comment(pipeline.team_mentions))
    notifier.send(format_opened_sync_pr(created))
    return created


def update_sync_pr(
    adapter: GitPlatformAdapter,
    repo: str,
    sync_pr: SyncPullRequest,
    description: SyncDescription,
) -> bool:
    """Write the description back if it changed; only the body is touched."""
    if description.body == sync_pr.body:
        return False
    LOG.info("Updating PR's body...")
    adapter.update_pr_body(repo, sync_pr.number, description.body)
    return True
