"""Rules turning commit messages and pull request labels into change levels."""

from collections.abc import Iterable
from types import MappingProxyType

from .levels import ChangeLevel
from .models import Commit

PREFIX_LEVELS = MappingProxyType(
    {
        "feat": ChangeLevel.MINOR,
        "feature": ChangeLevel.MINOR,
        "fix": ChangeLevel.PATCH,
        "bugfix": ChangeLevel.PATCH,
        "perf": ChangeLevel.PATCH,
        "security": ChangeLevel.PATCH,
        "patch": ChangeLevel.PATCH,
        "breaking": ChangeLevel.MAJOR,
        "breaking change": ChangeLevel.MAJOR,
    }
)

LABEL_LEVELS = MappingProxyType(
    {
        "breaking": ChangeLevel.MAJOR,
        "breaking change": ChangeLevel.MAJOR,
        "major": ChangeLevel.MAJOR,
        "enhancement": ChangeLevel.MINOR,
        "minor": ChangeLevel.MINOR,
        "bug": ChangeLevel.PATCH,
        "patch": ChangeLevel.PATCH,
        # recognized, but explicitly asks for no bump
        "none": ChangeLevel.NONE,
    }
)


def _normalize(text: str) -> str:
    return text.strip().lower()


def message_prefixes(message: str) -> list[str]:
    """Recognized prefixes found on any line of ``message``, in order."""
    found = []
    for line in message.replace("\r\n", "\n").split("\n"):
        if ":" not in line:
            continue
        prefix = _normalize(line.split(":", 1)[0])
        if prefix in PREFIX_LEVELS:
            found.append(prefix)
    return found


def classify_message(message: str) -> ChangeLevel:
    level = ChangeLevel.NONE
    for prefix in message_prefixes(message):
        level = level.greater(PREFIX_LEVELS[prefix])
    return level


def recognized_labels(labels: Iterable[str]) -> list[str]:
    return [label for label in map(_normalize, labels) if label in LABEL_LEVELS]


def classify_labels(labels: Iterable[str]) -> ChangeLevel:
    level = ChangeLevel.NONE
    for label in recognized_labels(labels):
        level = level.greater(LABEL_LEVELS[label])
    return level


def commit_level(commit: Commit) -> ChangeLevel:
    level = classify_message(commit.message)
    for pull in commit.pulls:
        level = level.greater(classify_labels(pull.labels))
    return level


def unlabeled_commits(commits: Iterable[Commit]) -> list[Commit]:
    """Commits that came from pull requests none of which carry a known label.

    Commits without pull requests are never reported.
    """
    return [
        c
        for c in commits
        if c.pulls and not any(recognized_labels(p.labels) for p in c.pulls)
    ]
