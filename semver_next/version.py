from collections.abc import Sequence

import semver

from .classify import commit_level
from .errors import InvalidBumpRange, InvalidInput
from .levels import ChangeLevel
from .models import Commit


def parse_version(text: str) -> semver.Version:
    """Parse a release version, tolerating a leading ``v`` and a missing minor/patch."""
    raw = text.strip()
    if raw[:1] in ("v", "V"):
        raw = raw[1:]
    try:
        return semver.Version.parse(raw, optional_minor_and_patch=True)
    except ValueError as e:
        raise InvalidInput(f'invalid previous version "{text}": {e}') from e


def decide_level(
    commits: Sequence[Commit], min_bump: ChangeLevel, max_bump: ChangeLevel
) -> ChangeLevel:
    if min_bump > max_bump:
        raise InvalidBumpRange()
    # an empty diff never bumps, whatever min_bump says
    if not commits:
        return ChangeLevel.NONE
    level = ChangeLevel.NONE
    for c in commits:
        level = level.greater(commit_level(c))
    return level.greater(min_bump).lesser(max_bump)


def bump(version: semver.Version, level: ChangeLevel) -> semver.Version:
    if level == ChangeLevel.MAJOR:
        return version.bump_major()
    if level == ChangeLevel.MINOR:
        return version.bump_minor()
    if level == ChangeLevel.PATCH:
        return version.bump_patch()
    return version


def next_version(
    current: semver.Version,
    commits: Sequence[Commit],
    min_bump: ChangeLevel = ChangeLevel.NONE,
    max_bump: ChangeLevel = ChangeLevel.MAJOR,
) -> semver.Version:
    return bump(current, decide_level(commits, min_bump, max_bump))
