"""
Commit history between a base ref and a head ref.

The walk pages through ``list_commits`` from head (newest first, 100 per page)
and stops at the first page holding the resolved base SHA. This assumes the
listing endpoint and the base share ancestry; if base is not reachable from
head the walk simply runs out of pages and returns everything it saw. A
compare-endpoint based diff could disagree with this in that case.
"""

import asyncio
import logging

from .errors import TransportError
from .github_client import PER_PAGE, GitHubAPI
from .models import Commit

logger = logging.getLogger("semver_next.history")

# pull lookups in flight at once; GitHub's secondary rate limit punishes bursts
MAX_CONCURRENT_LOOKUPS = 8


async def build_commit(gh: GitHubAPI, owner: str, repo: str, listed: Commit) -> Commit:
    pulls = await gh.list_merged_pulls_for_commit(owner, repo, listed.sha)
    return Commit(sha=listed.sha, message=listed.message, pulls=tuple(pulls))


async def build_commits(
    gh: GitHubAPI,
    owner: str,
    repo: str,
    listed: list[Commit],
    limit: int = MAX_CONCURRENT_LOOKUPS,
) -> list[Commit]:
    """Fetch associated pulls for every commit concurrently, keeping input order.

    At most ``limit`` lookups run at once. The first failure cancels the
    fetches still running. Failures that completed in the same round are
    joined into one error.
    """
    if not listed:
        return []
    sem = asyncio.Semaphore(max(1, limit))

    async def bounded(c: Commit) -> Commit:
        async with sem:
            return await build_commit(gh, owner, repo, c)

    tasks = [asyncio.ensure_future(bounded(c)) for c in listed]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    errors = [t.exception() for t in tasks if t in done and t.exception() is not None]
    if errors:
        raise TransportError.join(errors)
    return [t.result() for t in tasks]


async def diff_commits(
    gh: GitHubAPI, base: str | None, head: str, owner: str, repo: str
) -> list[Commit]:
    """Commits reachable from ``head`` that are strictly ahead of ``base``.

    ``base=None`` walks the whole history of ``head``.
    """
    base_sha = await gh.resolve_commit_sha(owner, repo, base) if base else None

    commits: list[Commit] = []
    page = 1
    while True:
        listed, has_next = await gh.list_commits(owner, repo, head, page=page, per_page=PER_PAGE)
        hit_base = False
        ahead = []
        for c in listed:
            if c.sha == base_sha:
                hit_base = True
                break
            ahead.append(c)
        commits.extend(await build_commits(gh, owner, repo, ahead))
        if hit_base or not has_next:
            break
        page += 1
    logger.debug("%s/%s %s..%s: %d commits over %d page(s)", owner, repo, base, head, len(commits), page)
    return commits
