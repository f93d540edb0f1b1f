"""Stagebot entry point.

Two modes: run (one promotion pass, for cron or CI schedules) and watch
(run every scheduler.interval_seconds). Usage: stagebot run | stagebot watch.

For a local run export GITHUB_TOKEN (and BOT_REPOSITORY or --repo) and
pass --local: every step runs except the merge API call.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from stagebot.adapters.github import GitHubAdapter
from stagebot.config import AppConfig, load_config
from stagebot.logging import StagebotLogging
from stagebot.notifications import SlackNotifier
from stagebot.runner import run_once

LOG = logging.getLogger("stagebot.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI with optional subcommand (run | watch)."""
    argv = argv if argv is not None else sys.argv[1:]
    sub = "run"
    rest = list(argv)
    if argv and not argv[0].startswith("-"):
        if argv[0] in ("run", "watch"):
            sub = argv[0]
            rest = argv[1:]

    parser = argparse.ArgumentParser(
        prog="stagebot",
        description="Stagebot - merge ready PRs into stage and keep the stage -> main PR current",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--repo",
        default=None,
        help="Target repository owner/name (overrides bot.repository)",
    )
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local run: skip the merge API call",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parsed = parser.parse_args(rest)
    parsed.subcommand = sub
    return parsed


def build_adapter(config: AppConfig) -> GitHubAdapter | None:
    token = config.github_token_resolved
    if not token:
        return None
    return GitHubAdapter(token=token, api_url=config.github.api_url)


def run_watch(adapter: GitHubAdapter, repo: str, config: AppConfig, notifier: SlackNotifier) -> None:
    """Loop: run once every scheduler.interval_seconds, never overlapping."""
    interval = config.scheduler.interval_seconds
    LOG.info("Stagebot watching %s every %ss", repo, interval)
    while True:
        outcome = run_once(adapter, repo, config, notifier)
        LOG.info("Run finished: %s", outcome.value)
        time.sleep(interval)


def main(argv: list[str] | None = None) -> int:
    """Entry point: run once or watch."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)
    if args.local:
        config.pipeline.local_run = True
    repo = args.repo or config.bot.repository

    StagebotLogging(config.logging).setup()

    if args.check:
        print("Config OK:", repo, "local_run" if config.pipeline.local_run else "live")
        return 0

    if not repo or "/" not in repo:
        LOG.error("Repository must be owner/name, got %r", repo)
        return 1
    adapter = build_adapter(config)
    if adapter is None:
        LOG.error("GitHub token not set (GITHUB_TOKEN or GITHUB_TOKEN_FILE)")
        return 1
    notifier = SlackNotifier(config.slack_webhook_resolved)

    if args.subcommand == "watch":
        try:
            run_watch(adapter, repo, config, notifier)
        except KeyboardInterrupt:
            return 0
        return 0

    outcome = run_once(adapter, repo, config, notifier)
    LOG.info("Run finished: %s", outcome.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
