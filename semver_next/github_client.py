"""
GitHub REST collaborator.

``GitHubAPI`` is the one capability set the core depends on; ``GitHubClient``
implements it on top of httpx. Rate-limited responses are waited out (per
``Retry-After`` or ``x-ratelimit-reset``) and retried; other failures are not.
"""

import asyncio
import logging
import time
from typing import Any, Protocol

import httpx

from .errors import NotFound, TransportError
from .models import Commit, Pull, Release

logger = logging.getLogger("semver_next.github")

DEFAULT_API_URL = "https://api.github.com"
PER_PAGE = 100
# rate-limited responses (403/429) are waited out and retried this many times
MAX_RATE_LIMIT_RETRIES = 3
MAX_RATE_LIMIT_WAIT = 900.0


class GitHubAPI(Protocol):
    async def resolve_commit_sha(self, owner: str, repo: str, ref: str) -> str: ...

    async def list_commits(
        self, owner: str, repo: str, ref: str, page: int = 1, per_page: int = PER_PAGE
    ) -> tuple[list[Commit], bool]: ...

    async def list_merged_pulls_for_commit(self, owner: str, repo: str, sha: str) -> list[Pull]: ...

    async def get_latest_release(self, owner: str, repo: str) -> Release | None: ...

    async def get_pull(self, owner: str, repo: str, number: int) -> Pull: ...

    async def list_pull_commits(self, owner: str, repo: str, number: int) -> list[Commit]: ...

    async def create_tag(self, owner: str, repo: str, tag: str, message: str, target_sha: str) -> str: ...

    async def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> None: ...


def _pull_from_json(data: dict[str, Any]) -> Pull:
    return Pull(
        number=data.get("number", 0),
        labels=tuple(label.get("name", "") for label in data.get("labels") or []),
    )


def _commit_from_json(data: dict[str, Any]) -> Commit:
    return Commit(sha=data["sha"], message=(data.get("commit") or {}).get("message", ""))


class GitHubClient:
    """Thin async wrapper around the GitHub REST API v3."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = MAX_RATE_LIMIT_RETRIES,
        max_rate_limit_wait: float = MAX_RATE_LIMIT_WAIT,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.max_retries = max_retries
        self.max_rate_limit_wait = max_rate_limit_wait

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {"Accept": accept, "User-Agent": "semver-next", "X-GitHub-Api-Version": "2022-11-28"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _rate_limit_wait(self, resp: httpx.Response) -> float | None:
        """Seconds to wait before retrying a rate-limited response, or None."""
        if resp.status_code not in (403, 429):
            return None
        retry_after = resp.headers.get("retry-after")
        if retry_after is not None:
            try:
                return min(max(float(retry_after), 0.0), self.max_rate_limit_wait)
            except ValueError:
                return None
        if resp.headers.get("x-ratelimit-remaining") == "0":
            try:
                reset = float(resp.headers.get("x-ratelimit-reset", ""))
            except ValueError:
                return None
            return min(max(reset - time.time(), 0.0), self.max_rate_limit_wait)
        if resp.status_code == 429:
            return 1.0
        return None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        accept: str = "application/vnd.github+json",
    ) -> httpx.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        for attempt in range(1, self.max_retries + 2):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    resp = await client.request(
                        method,
                        url,
                        headers=self._headers(accept),
                        params=params,
                        json=json_body,
                    )
            except httpx.HTTPError as e:
                raise TransportError(f"{method} {url}: {e}") from e
            logger.debug("%s %s -> %d", method, url, resp.status_code)
            wait = self._rate_limit_wait(resp)
            if wait is None or attempt > self.max_retries:
                break
            logger.warning(
                "%s %s rate limited (attempt %d/%d), waiting %.1fs",
                method, url, attempt, self.max_retries + 1, wait,
            )
            await asyncio.sleep(wait)
        if resp.status_code == 404:
            raise NotFound(f"{method} {url}: not found")
        if not resp.is_success:
            try:
                message = resp.json().get("message", resp.text)
            except ValueError:
                message = resp.text
            raise TransportError(
                f"{method} {url} returned HTTP {resp.status_code}: {message}",
                status_code=resp.status_code,
            )
        return resp

    async def resolve_commit_sha(self, owner: str, repo: str, ref: str) -> str:
        try:
            resp = await self._request(
                "GET", f"/repos/{owner}/{repo}/commits/{ref}", accept="application/vnd.github.sha"
            )
        except TransportError as e:
            # GitHub answers 422 for refs that do not name a commit
            if e.status_code == 422:
                raise NotFound(f"ref {ref!r} not found in {owner}/{repo}") from e
            raise
        return resp.text.strip()

    async def list_commits(
        self, owner: str, repo: str, ref: str, page: int = 1, per_page: int = PER_PAGE
    ) -> tuple[list[Commit], bool]:
        resp = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/commits",
            params={"sha": ref, "page": page, "per_page": per_page},
        )
        commits = [_commit_from_json(c) for c in resp.json()]
        return commits, "next" in resp.links

    async def list_merged_pulls_for_commit(self, owner: str, repo: str, sha: str) -> list[Pull]:
        resp = await self._request(
            "GET", f"/repos/{owner}/{repo}/commits/{sha}/pulls", params={"per_page": PER_PAGE}
        )
        return [_pull_from_json(p) for p in resp.json() if p.get("merged_at")]

    async def get_latest_release(self, owner: str, repo: str) -> Release | None:
        try:
            resp = await self._request("GET", f"/repos/{owner}/{repo}/releases/latest")
        except NotFound:
            return None
        data = resp.json()
        return Release(name=data.get("name") or "", tag=data["tag_name"])

    async def get_pull(self, owner: str, repo: str, number: int) -> Pull:
        resp = await self._request("GET", f"/repos/{owner}/{repo}/pulls/{number}")
        return _pull_from_json(resp.json())

    async def list_pull_commits(self, owner: str, repo: str, number: int) -> list[Commit]:
        commits: list[Commit] = []
        page = 1
        while True:
            resp = await self._request(
                "GET",
                f"/repos/{owner}/{repo}/pulls/{number}/commits",
                params={"page": page, "per_page": PER_PAGE},
            )
            commits.extend(_commit_from_json(c) for c in resp.json())
            if "next" not in resp.links:
                return commits
            page += 1

    async def create_tag(self, owner: str, repo: str, tag: str, message: str, target_sha: str) -> str:
        resp = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/tags",
            json_body={"tag": tag, "message": message, "object": target_sha, "type": "commit"},
        )
        return resp.json()["sha"]

    async def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> None:
        await self._request("POST", f"/repos/{owner}/{repo}/git/refs", json_body={"ref": ref, "sha": sha})
