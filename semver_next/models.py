from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .levels import ChangeLevel


class Pull(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    labels: tuple[str, ...] = ()


class Commit(BaseModel):
    model_config = ConfigDict(frozen=True)

    sha: str
    message: str = ""
    pulls: tuple[Pull, ...] = ()


class Release(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    tag: str


class ResultPull(BaseModel):
    number: int
    labels: list[str] = Field(default_factory=list)  # recognized labels only
    change_level: ChangeLevel = ChangeLevel.NONE

    @field_serializer("change_level")
    def serialize_level(self, level: ChangeLevel) -> str:
        return str(level)


class ResultCommit(BaseModel):
    sha: str
    message: str = ""
    change_level: ChangeLevel = ChangeLevel.NONE
    pulls: list[ResultPull] = Field(default_factory=list)

    @field_serializer("change_level")
    def serialize_level(self, level: ChangeLevel) -> str:
        return str(level)


class Result(BaseModel):
    next_version: str
    previous_version: str
    change_level: ChangeLevel = ChangeLevel.NONE
    commits: list[ResultCommit] = Field(default_factory=list)

    @field_serializer("change_level")
    def serialize_level(self, level: ChangeLevel) -> str:
        return str(level)
