"""Configuration loading from YAML and environment.

Secrets (tokens, Slack webhook) are taken from environment variables or
from files (Docker secrets). Never put real tokens in config files
committed to the repo.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so validators can read env/file
_current_env: dict[str, str] = {}

DEFAULT_DESCRIPTION_FOOTER = """
## Testing
Verify every linked pull request on the stage environment before merging to production.
"""


class BotConfig(BaseSettings):
    """Target repository."""

    model_config = SettingsConfigDict(env_prefix="BOT_", extra="ignore")

    repository: str = Field(default="owner/repo", description="Target repo e.g. adobecom/milo")


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or app token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")


class SlackConfig(BaseSettings):
    """Slack incoming webhook for merge / sync PR notifications."""

    model_config = SettingsConfigDict(env_prefix="SLACK_", extra="ignore")

    webhook_url: str | None = Field(default=None, description="Incoming webhook URL; use env or secret file")


class PipelineConfig(BaseSettings):
    """Stage -> main promotion rules.

    No env prefix: REQUIRED_APPROVALS and LOCAL_RUN are read as is.
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    required_approvals: int = Field(default=2, ge=0, description="Approved reviews needed to merge")
    local_run: bool = Field(default=False, description="Skip the merge API call (local testing)")
    stage_branch: str = Field(default="stage", description="Branch candidates target")
    prod_branch: str = Field(default="main", description="Branch the sync PR targets")
    sync_pr_title: str = Field(default="[Release] Stage to Main", description="Exact title of the sync PR")
    # Check run of this job itself; never counted as failing
    own_check_name: str = Field(default="merge-to-stage", description="Name of the automation's own check")
    merge_method: str = Field(default="squash", description="merge, squash or rebase")
    merge_delay_seconds: float = Field(default=5.0, ge=0, description="Pause after each successful merge")
    fetch_workers: int = Field(default=8, ge=1, le=64, description="Threads for files/checks/reviews fetch")
    claim_sync_pr_files: bool = Field(
        default=True,
        description="Treat files already in the sync PR as claimed for the run",
    )
    team_mentions: list[str] = Field(
        default_factory=list,
        description="Handles mentioned in the 'Testing can start' comment",
    )
    description_footer: str = Field(
        default=DEFAULT_DESCRIPTION_FOOTER,
        description="Static text below the PR list in a new sync PR",
    )


class LabelsConfig(BaseSettings):
    """Label names driving the pipeline."""

    model_config = SettingsConfigDict(env_prefix="LABELS_", extra="ignore")

    ready_for_stage: str = Field(default="Ready for Stage", description="Required on every candidate")
    high_priority: str = Field(default="high priority", description="Merged in the first pass")
    testing_started_prefix: str = Field(default="SOT", description="Sync PR label prefix that halts automation")


class BlackoutWindow(BaseModel):
    """Change freeze period; both ends inclusive."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "BlackoutWindow":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("blackout window bounds must be timezone-aware")
        if self.end < self.start:
            raise ValueError("blackout window end is before start")
        return self


class BlackoutConfig(BaseSettings):
    """Recurring change-freeze windows."""

    model_config = SettingsConfigDict(env_prefix="BLACKOUT_", extra="ignore")

    windows: list[BlackoutWindow] = Field(default_factory=list, description="Freeze periods")
    offset_days: int = Field(default=0, description="Shift 'now' by days before checking windows")


class SchedulerConfig(BaseSettings):
    """Scheduler (watch mode) settings."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_", extra="ignore")

    interval_seconds: int = Field(default=600, ge=30, description="Seconds between runs")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    bot: BotConfig = Field(default_factory=BotConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    labels: LabelsConfig = Field(default_factory=LabelsConfig)
    blackout: BlackoutConfig = Field(default_factory=BlackoutConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from env or Docker secret file."""
        t = self.github.token
        if t and not t.startswith("${"):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")

    @property
    def slack_webhook_resolved(self) -> str | None:
        """Resolve Slack webhook URL from config, env or Docker secret
        file."""
        url = self.slack.webhook_url
        if url and not url.startswith("${"):
            return url
        return _read_secret("SLACK_WEBHOOK", "SLACK_WEBHOOK_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        # Simple $VAR
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE, SLACK_WEBHOOK or
    SLACK_WEBHOOK_FILE. REQUIRED_APPROVALS and LOCAL_RUN in the
    environment win over the YAML pipeline section.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    # Env overrides for nested values (e.g. BOT_REPOSITORY)
    bot_raw = raw.get("bot") or {}
    if _current_env.get("BOT_REPOSITORY"):
        bot_raw = {**bot_raw, "repository": _current_env.get("BOT_REPOSITORY")}

    pipeline_raw = dict(raw.get("pipeline") or {})
    for env_key in ("REQUIRED_APPROVALS", "LOCAL_RUN"):
        if _current_env.get(env_key):
            pipeline_raw[env_key.lower()] = _current_env[env_key]

    return AppConfig(
        bot=BotConfig(**bot_raw),
        github=GitHubConfig(**(raw.get("github") or {})),
        slack=SlackConfig(**(raw.get("slack") or {})),
        pipeline=PipelineConfig(**pipeline_raw),
        labels=LabelsConfig(**(raw.get("labels") or {})),
        blackout=BlackoutConfig(**(raw.get("blackout") or {})),
        scheduler=SchedulerConfig(**(raw.get("scheduler") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
