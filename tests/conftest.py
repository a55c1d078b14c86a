"""Shared fixtures: an in-memory GitHub standing in for the REST client."""

import asyncio

import pytest

from semver_next.errors import NotFound
from semver_next.models import Commit, Pull, Release

SHA0 = "0aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
SHA1 = "1aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
SHA2 = "2aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
SHA3 = "3aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"


class FakeGitHub:
    def __init__(
        self,
        refs: dict[str, str] | None = None,
        pages: list[list[Commit]] | None = None,
        pulls: dict[str, list[Pull]] | None = None,
        release: Release | None = None,
        pull_info: dict[int, Pull] | None = None,
        pull_commits: dict[int, list[Commit]] | None = None,
        errors: dict[tuple[str, str], BaseException] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.refs = refs or {}
        self.pages = pages or [[]]
        self.pulls = pulls or {}
        self.release = release
        self.pull_info = pull_info or {}
        self.pull_commits = pull_commits or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[tuple] = []
        self.cancelled: list[str] = []
        self.tags: list[tuple] = []
        self.created_refs: list[tuple] = []

    def _maybe_fail(self, method: str, key: str) -> None:
        err = self.errors.get((method, key))
        if err is not None:
            raise err

    async def resolve_commit_sha(self, owner, repo, ref):
        self.calls.append(("resolve_commit_sha", owner, repo, ref))
        self._maybe_fail("resolve_commit_sha", ref)
        if ref not in self.refs:
            raise NotFound(f"ref {ref!r} not found")
        return self.refs[ref]

    async def list_commits(self, owner, repo, ref, page=1, per_page=100):
        self.calls.append(("list_commits", owner, repo, ref, page, per_page))
        self._maybe_fail("list_commits", str(page))
        return list(self.pages[page - 1]), page < len(self.pages)

    async def list_merged_pulls_for_commit(self, owner, repo, sha):
        self.calls.append(("list_merged_pulls_for_commit", owner, repo, sha))
        try:
            if sha in self.delays:
                await asyncio.sleep(self.delays[sha])
        except asyncio.CancelledError:
            self.cancelled.append(sha)
            raise
        self._maybe_fail("list_merged_pulls_for_commit", sha)
        return list(self.pulls.get(sha, []))

    async def get_latest_release(self, owner, repo):
        self.calls.append(("get_latest_release", owner, repo))
        return self.release

    async def get_pull(self, owner, repo, number):
        self.calls.append(("get_pull", owner, repo, number))
        if number not in self.pull_info:
            raise NotFound(f"pull #{number} not found")
        return self.pull_info[number]

    async def list_pull_commits(self, owner, repo, number):
        self.calls.append(("list_pull_commits", owner, repo, number))
        return list(self.pull_commits.get(number, []))

    async def create_tag(self, owner, repo, tag, message, target_sha):
        self.tags.append((owner, repo, tag, message, target_sha))
        return "7065ecdd3f84fc92fe8b7d3fb3927a0974f5dc37"

    async def create_ref(self, owner, repo, ref, sha):
        self.created_refs.append((owner, repo, ref, sha))


@pytest.fixture
def fake_github():
    return FakeGitHub
