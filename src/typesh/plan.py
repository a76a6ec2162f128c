"""Execution plan models: the validated, ready-to-run form of a pipeline."""

from __future__ import annotations

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .streams.types import StreamType, can_connect
from .syntax.ast import WriteMode


class Terminal(BaseModel):
    """The shell's own stdin/stdout."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["terminal"] = "terminal"


class PreviousStage(BaseModel):
    """Read end of the pipe from the stage to the left."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["previous_stage"] = "previous_stage"


class NextStage(BaseModel):
    """Write end of the pipe to the stage on the right."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["next_stage"] = "next_stage"


class FileSource(BaseModel):
    """Input read from a file (``< path``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str


class FileSink(BaseModel):
    """Output written to a file (``> path`` or ``>> path``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str
    mode: WriteMode = WriteMode.TRUNCATE


ReadSource = Annotated[
    Union[Terminal, PreviousStage, FileSource], Field(discriminator="kind")
]
WriteSink = Annotated[Union[Terminal, NextStage, FileSink], Field(discriminator="kind")]


class PipelineStage(BaseModel):
    """One resolved stage of a pipeline."""

    model_config = ConfigDict(frozen=True)

    index: int
    program: str
    args: List[str] = Field(default_factory=list)
    read_source: ReadSource
    write_sink: WriteSink
    resolved_input: StreamType
    resolved_output: StreamType

    @property
    def argv(self) -> List[str]:
        """Argument vector with the program name as argument zero."""
        return [self.program, *self.args]

    def describe(self) -> str:
        parts = [self.program, *self.args]
        if isinstance(self.read_source, FileSource):
            parts.append(f"<{self.read_source.path}")
        if isinstance(self.write_sink, FileSink):
            parts.append(f"{self.write_sink.mode.operator}{self.write_sink.path}")
        return " ".join(parts)


class ExecutionPlan(BaseModel):
    """Ordered stages satisfying the redirect and type invariants.

    The invariants are re-checked on construction, so a plan that violates
    them cannot exist even when built by hand.
    """

    model_config = ConfigDict(frozen=True)

    stages: List[PipelineStage] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_invariants(self) -> "ExecutionPlan":
        last = len(self.stages) - 1
        for i, stage in enumerate(self.stages):
            if stage.index != i:
                raise ValueError(f"stage {i} has index {stage.index}")

            if i == 0 and isinstance(stage.read_source, PreviousStage):
                raise ValueError("the first stage has no previous stage to read from")
            if i > 0 and not isinstance(stage.read_source, PreviousStage):
                raise ValueError(f"stage {i} must read from the previous stage")

            if i == last and isinstance(stage.write_sink, NextStage):
                raise ValueError("the last stage has no next stage to write to")
            if i < last and not isinstance(stage.write_sink, NextStage):
                raise ValueError(f"stage {i} must write to the next stage")

        for producer, consumer in zip(self.stages, self.stages[1:]):
            if not can_connect(producer.resolved_output, consumer.resolved_input):
                raise ValueError(
                    f"stage {producer.index} output {producer.resolved_output} "
                    f"cannot feed stage {consumer.index} input {consumer.resolved_input}"
                )
        return self

    def __len__(self) -> int:
        return len(self.stages)

    @property
    def first(self) -> PipelineStage:
        return self.stages[0]

    @property
    def last(self) -> PipelineStage:
        return self.stages[-1]

    def describe(self) -> str:
        return " | ".join(stage.describe() for stage in self.stages)


__all__ = [
    "ExecutionPlan",
    "FileSink",
    "FileSource",
    "NextStage",
    "PipelineStage",
    "PreviousStage",
    "ReadSource",
    "Terminal",
    "WriteSink",
]
