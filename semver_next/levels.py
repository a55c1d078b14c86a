import enum

from .errors import InvalidInput


class ChangeLevel(enum.IntEnum):
    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def greater(self, other: "ChangeLevel") -> "ChangeLevel":
        """Return whichever is higher, self or other."""
        return other if other > self else self

    def lesser(self, other: "ChangeLevel") -> "ChangeLevel":
        """Return whichever is lower, self or other."""
        return other if other < self else self

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, token: str | None, default: "ChangeLevel") -> "ChangeLevel":
        # empty means "not supplied"
        if not token:
            return default
        try:
            return cls[token.strip().upper()]
        except KeyError:
            raise InvalidInput(f"invalid change level: {token}") from None


LEVEL_TOKENS = tuple(str(level) for level in ChangeLevel)
