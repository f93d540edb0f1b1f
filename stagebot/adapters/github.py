"""GitHub API adapter."""

import logging
from datetime import datetime
from typing import Any, Dict, List

import requests

from stagebot.adapters.base import GitPlatformAdapter, GitPlatformError
from stagebot.models import PR, CheckResult, Commit, Review

LOG = logging.getLogger("stagebot.adapters.github")

PER_PAGE = 100


def _parse_iso(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _pr_from_api(data: Dict[str, Any]) -> PR:
    head = data.get("head") or {}
    base = data.get("base") or {}
    labels = [lb["name"] for lb in (data.get("labels") or []) if isinstance(lb, dict) and "name" in lb]
    created = data.get("created_at")
    return PR(
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        html_url=data.get("html_url") or "",
        base_branch=base.get("ref", ""),
        head_branch=head.get("ref", ""),
        head_sha=head.get("sha", ""),
        state=data.get("state", "open"),
        labels=labels,
        created_at=_parse_iso(created) if created else None,
    )


def _review_from_api(data: Dict[str, Any]) -> Review:
    user = data.get("user") or {}
    return Review(reviewer=user.get("login", ""), state=data.get("state") or "")


def _error_message(resp: requests.Response) -> str:
    """Platform message plus any validation error details (422)."""
    msg = resp.text or resp.reason or str(resp.status_code)
    try:
        payload = resp.json()
    except ValueError:
        return msg
    if not isinstance(payload, dict):
        return msg
    msg = payload.get("message", msg)
    details = [e.get("message") for e in payload.get("errors") or [] if isinstance(e, dict) and e.get("message")]
    if details:
        msg = f"{msg}: {'; '.join(details)}"
    return msg


class GitHubAdapter(GitPlatformAdapter):
    """GitHub API implementation."""

    def __init__(self, token: str, api_url: str = "https://api.github.com") -> None:
        self._api_url = api_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github+json"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        if path.startswith("http"):
            url = path
        else:
            url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        LOG.debug("%s %s", method, url)
        resp = self._session.request(method, url, params=params, json=json, timeout=30)
        if resp.status_code >= 400:
            raise GitPlatformError(f"{resp.status_code}: {_error_message(resp)}")
        return resp

    def _paginate(
        self,
        path: str,
        params: Dict[str, Any] | None = None,
        key: str | None = None,
    ) -> List[Dict[str, Any]]:
        """GET every page of a list endpoint, following Link rel=next.

        key selects the list inside an object payload (e.g. check_runs).
        """
        items: List[Dict[str, Any]] = []
        url: str | None = path
        page_params: Dict[str, Any] | None = {**(params or {}), "per_page": PER_PAGE}
        while url:
            resp = self._request("GET", url, params=page_params)
            data = resp.json() or []
            if key is not None:
                data = data.get(key) or []
            items.extend(data)
            url = (resp.links or {}).get("next", {}).get("url")
            # the next URL already carries the query string
            page_params = None
        return items

    def list_pull_requests(self, repo: str, base: str, state: str = "open") -> List[PR]:
        data = self._paginate(f"/repos/{repo}/pulls", params={"state": state, "base": base})
        return [_pr_from_api(d) for d in data]

    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        data = self._paginate(f"/repos/{repo}/pulls/{pr_number}/files")
        return [d["filename"] for d in data if "filename" in d]

    def list_check_runs(self, repo: str, ref: str) -> List[CheckResult]:
        data = self._paginate(f"/repos/{repo}/commits/{ref}/check-runs", key="check_runs")
        return [CheckResult(name=d.get("name") or "", conclusion=d.get("conclusion")) for d in data]

    def list_reviews(self, repo: str, pr_number: int) -> List[Review]:
        data = self._paginate(f"/repos/{repo}/pulls/{pr_number}/reviews")
        return [_review_from_api(d) for d in data]

    def merge_pr(self, repo: str, pr_number: int, merge_method: str = "squash") -> None:
        self._request(
            "PUT",
            f"/repos/{repo}/pulls/{pr_number}/merge",
            json={"merge_method": merge_method},
        )

    def create_pr(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PR:
        resp = self._request(
            "POST",
            f"/repos/{repo}/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        return _pr_from_api(resp.json())

    def update_pr_body(self, repo: str, pr_number: int, body: str) -> None:
        self._request("PATCH", f"/repos/{repo}/pulls/{pr_number}", json={"body": body})

    def compare_commits(self, repo: str, base: str, head: str) -> List[Commit]:
        data = self._paginate(f"/repos/{repo}/compare/{base}...{head}", key="commits")
        return [Commit(sha=d["sha"], message=(d.get("commit") or {}).get("message", "")) for d in data]

    def list_prs_for_commit(self, repo: str, sha: str) -> List[PR]:
        data = self._paginate(f"/repos/{repo}/commits/{sha}/pulls")
        return [_pr_from_api(d) for d in data]

    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        self._request("POST", f"/repos/{repo}/issues/{issue_number}/comments", json={"body": body})
