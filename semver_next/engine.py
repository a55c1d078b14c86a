"""
Next-version computation and the pre-merge pull request check.

These are the operations the CLI and the service call. Everything here talks
to GitHub only through a ``GitHubAPI`` implementation.
"""

import logging

import semver
from pydantic import BaseModel

from .classify import (
    classify_labels,
    classify_message,
    commit_level,
    message_prefixes,
    recognized_labels,
    unlabeled_commits,
)
from .errors import InvalidBumpRange, InvalidInput, NoChangeError, NotFound, UnlabeledCommitsError, ValidationError
from .github_client import GitHubAPI
from .history import diff_commits
from .levels import ChangeLevel
from .logs import log_event
from .models import Commit, Release, Result, ResultCommit, ResultPull
from .version import bump, decide_level, parse_version

logger = logging.getLogger("semver_next.engine")


class NextOptions(BaseModel):
    repo: str = ""
    head: str = ""
    base: str = ""  # empty: use the latest release's tag
    prev_version: str = ""  # empty: derive from base
    min_bump: str = ""
    max_bump: str = ""
    require_labels: bool = False
    require_change: bool = False


def split_repo(repo: str) -> tuple[str, str]:
    parts = repo.split("/")
    if len(parts) != 2 or not all(p and p == p.strip() for p in parts):
        raise InvalidInput("repo must be in the form owner/name")
    return parts[0], parts[1]


async def latest_release(gh: GitHubAPI, owner: str, repo: str) -> Release | None:
    """The release marked latest, or None when the repo has never released."""
    try:
        return await gh.get_latest_release(owner, repo)
    except NotFound:
        return None


def _result_commit(c: Commit) -> ResultCommit:
    return ResultCommit(
        sha=c.sha,
        message=c.message,
        change_level=commit_level(c),
        pulls=[
            ResultPull(
                number=p.number,
                labels=recognized_labels(p.labels),
                change_level=classify_labels(p.labels),
            )
            for p in c.pulls
        ],
    )


def _describe_unlabeled(commits: list[Commit]) -> list[str]:
    return [f"{c.sha} ({', '.join(f'#{p.number}' for p in c.pulls)})" for c in commits]


async def compute_next(gh: GitHubAPI, opts: NextOptions) -> Result:
    # input checks all happen before the first GitHub call
    min_bump = ChangeLevel.parse(opts.min_bump, ChangeLevel.NONE)
    max_bump = ChangeLevel.parse(opts.max_bump, ChangeLevel.MAJOR)
    if min_bump > max_bump:
        raise InvalidBumpRange()
    prev: semver.Version | None = parse_version(opts.prev_version) if opts.prev_version else None
    owner, repo = split_repo(opts.repo)
    if not opts.head:
        raise InvalidInput("head ref is required")

    base: str | None = opts.base or None
    if base is None:
        release = await latest_release(gh, owner, repo)
        if release is not None:
            base = release.tag
    if prev is None:
        prev = parse_version(base) if base else semver.Version(0, 0, 0)

    commits = await diff_commits(gh, base, opts.head, owner, repo)
    level = decide_level(commits, min_bump, max_bump)
    nxt = bump(prev, level)
    result = Result(
        next_version=str(nxt),
        previous_version=str(prev),
        change_level=level,
        commits=[_result_commit(c) for c in commits],
    )
    log_event(
        logger,
        "next_version",
        repo=opts.repo,
        base=base,
        head=opts.head,
        commits=len(commits),
        previous_version=result.previous_version,
        next_version=result.next_version,
        change_level=str(level),
    )

    if opts.require_labels:
        unlabeled = unlabeled_commits(commits)
        if unlabeled:
            described = _describe_unlabeled(unlabeled)
            raise UnlabeledCommitsError(
                "pull requests without a recognized label: " + ", ".join(described),
                result,
                detail=described,
            )
    if opts.require_change and nxt == prev:
        raise NoChangeError(result)
    return result


async def check_pull_request(gh: GitHubAPI, repo: str, number: int) -> ChangeLevel:
    """Validate that a pull request would classify cleanly once merged.

    Passes when the pull carries a recognized label, or when every one of its
    commits has a recognized message prefix. Returns the level the pull would
    contribute.
    """
    owner, name = split_repo(repo)
    pull = await gh.get_pull(owner, name, number)
    level = classify_labels(pull.labels)
    if recognized_labels(pull.labels):
        log_event(logger, "pull_check", repo=repo, number=number, ok=True, by="label")
        return level

    commits = await gh.list_pull_commits(owner, name, number)
    missing = [c.sha for c in commits if not message_prefixes(c.message)]
    if missing:
        log_event(logger, "pull_check", repo=repo, number=number, ok=False, missing=missing)
        raise ValidationError(number, missing)
    for c in commits:
        level = level.greater(classify_message(c.message))
    log_event(logger, "pull_check", repo=repo, number=number, ok=True, by="commits")
    return level


async def create_tag(gh: GitHubAPI, owner: str, repo: str, tag: str, target_ref: str) -> str:
    """Create an annotated tag named ``tag`` on ``target_ref`` and its ``refs/tags`` ref."""
    target_sha = await gh.resolve_commit_sha(owner, repo, target_ref)
    tag_sha = await gh.create_tag(owner, repo, tag, tag, target_sha)
    await gh.create_ref(owner, repo, f"refs/tags/{tag}", tag_sha)
    log_event(logger, "tag_created", repo=f"{owner}/{repo}", tag=tag, sha=target_sha)
    return tag_sha
