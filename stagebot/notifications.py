"""Slack notifications for merges and new sync pull requests.

Messages use Slack mrkdwn links (<url|text>). Delivery is best effort:
a failed post is logged and never interrupts a run.
"""

import logging

import requests

from stagebot.models import PR, PullRequestCandidate

LOG = logging.getLogger("stagebot.notifications")

TEMPLATE_MERGED = ":merged: PR merged to stage: <{url}|{number}: {title}>."
TEMPLATE_OPENED_SYNC_PR = ":fast_forward: Created <{url}|Stage to Main PR {number}>"


def format_merged(pr: PullRequestCandidate) -> str:
    """Message for a pull request merged to stage."""
    return TEMPLATE_MERGED.format(url=pr.html_url, number=pr.number, title=pr.title)


def format_opened_sync_pr(pr: PR) -> str:
    """Message for a newly created stage -> main pull request."""
    return TEMPLATE_OPENED_SYNC_PR.format(url=pr.html_url, number=pr.number)


class SlackNotifier:
    """Posts text messages to a Slack incoming webhook.

    Without a webhook URL messages are only logged (local runs).
    """

    def __init__(self, webhook_url: str | None = None, timeout: int = 10) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._session = requests.Session()

    def send(self, text: str) -> bool:
        """Deliver text; return True if Slack accepted it."""
        if not self._webhook_url:
            LOG.info("Slack webhook not configured, message: %s", text)
            return False
        try:
            resp = self._session.post(self._webhook_url, json={"text": text}, timeout=self._timeout)
        except requests.RequestException as e:
            LOG.warning("Slack notification failed: %s", e)
            return False
        if resp.status_code >= 400:
            LOG.warning("Slack notification rejected: %s %s", resp.status_code, resp.text)
            return False
        return True
