"""
semver-next command line.

    semver-next OWNER/REPO --ref HEAD [--prev BASE] [--prev-version X.Y.Z] ...
    semver-next check-pr OWNER/REPO NUMBER

The next version (or the JSON result) goes to stdout, logs go to stderr.
"""

import argparse
import asyncio
import logging
import sys
from importlib import metadata

from .config import Settings, load_settings
from .engine import NextOptions, check_pull_request, compute_next, create_tag, split_repo
from .errors import NoChangeError, PolicyViolation, SemverNextError, UnlabeledCommitsError
from .github_client import GitHubClient
from .levels import LEVEL_TOKENS
from .logs import logger, setup_logging
from .models import Result

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNLABELED = 3
EXIT_NO_CHANGE = 10

DESCRIPTION = """\
semver-next analyzes the merged pull requests and commits since a GitHub
repository's latest release to determine the next release version based on
pull request labels and commit message prefixes.
"""


def _version() -> str:
    try:
        return metadata.version("semver-next")
    except metadata.PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="semver-next", description=DESCRIPTION)
    parser.add_argument("repo", help='GitHub repository in "<owner>/<repo>" format.')
    parser.add_argument(
        "-r", "--ref", required=True, help="The tag, branch or commit sha that will be tagged for the next release."
    )
    parser.add_argument(
        "-p",
        "--prev",
        default="",
        help='The git tag from the previous release. Defaults to the tag of the release marked "latest".',
    )
    parser.add_argument(
        "-v",
        "--prev-version",
        default="",
        help="The version of the previous release in semver format. Needed when release tags are not semver.",
    )
    parser.add_argument(
        "--min-bump",
        choices=LEVEL_TOKENS,
        default="none",
        help="The minimum amount to bump the version. Ignored when there are no commits since the previous release.",
    )
    parser.add_argument(
        "--max-bump", choices=LEVEL_TOKENS, default="major", help="The maximum amount to bump the version."
    )
    parser.add_argument(
        "--require-labels",
        action="store_true",
        help=f"Exit {EXIT_UNLABELED} when a merged pull request has no recognized label.",
    )
    parser.add_argument(
        "--require-change",
        action="store_true",
        help=f"Exit {EXIT_NO_CHANGE} when the version would not change.",
    )
    parser.add_argument("--create-tag", action="store_true", help="Create a tag for the next version on --ref.")
    parser.add_argument("--tag-prefix", default="v", help="Prefix for the tag created by --create-tag.")
    parser.add_argument("--json", action="store_true", help="Output in JSON format.")
    parser.add_argument("--version", action="version", version=f"version {_version()}")
    return parser


def build_check_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="semver-next check-pr",
        description="Check that a pull request carries a recognized label or that all its commits have a recognized prefix.",
    )
    parser.add_argument("repo", help='GitHub repository in "<owner>/<repo>" format.')
    parser.add_argument("number", type=int, help="Pull request number.")
    return parser


def _client(settings: Settings) -> GitHubClient:
    return GitHubClient(
        token=settings.github_token,
        base_url=settings.github_api_url,
        timeout=settings.http_timeout,
    )


def _print_result(result: Result, as_json: bool) -> None:
    if as_json:
        print(result.model_dump_json(indent=2))
    else:
        print(result.next_version)


async def _run_next(args: argparse.Namespace, settings: Settings) -> int:
    gh = _client(settings)
    opts = NextOptions(
        repo=args.repo,
        head=args.ref,
        base=args.prev,
        prev_version=args.prev_version,
        min_bump=args.min_bump,
        max_bump=args.max_bump,
        require_labels=args.require_labels,
        require_change=args.require_change,
    )
    try:
        result = await compute_next(gh, opts)
    except PolicyViolation as e:
        # the computation itself succeeded, so the version is still reported
        _print_result(e.result, args.json)
        print(f"error: {e.message}", file=sys.stderr)
        if isinstance(e, NoChangeError):
            return EXIT_NO_CHANGE
        if isinstance(e, UnlabeledCommitsError):
            return EXIT_UNLABELED
        return EXIT_ERROR

    if args.create_tag and result.next_version != result.previous_version:
        owner, repo = split_repo(args.repo)
        await create_tag(gh, owner, repo, f"{args.tag_prefix}{result.next_version}", args.ref)
    _print_result(result, args.json)
    return EXIT_OK


async def _run_check(args: argparse.Namespace, settings: Settings) -> int:
    level = await check_pull_request(_client(settings), args.repo, args.number)
    print(f"ok: #{args.number} ({str(level)})")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings()
    setup_logging(settings.log_level, default=logging.WARNING, structured=settings.structured_logging)

    if argv[:1] == ["check-pr"]:
        args = build_check_parser().parse_args(argv[1:])
        run = _run_check
    else:
        args = build_parser().parse_args(argv)
        run = _run_next

    if not settings.github_token:
        print("error: GITHUB_TOKEN must be set", file=sys.stderr)
        return EXIT_ERROR
    try:
        return asyncio.run(run(args, settings))
    except SemverNextError as e:
        logger.debug("failed: %s", e.to_dict())
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
