"""Pipeline execution engine.

Runs a validated ExecutionPlan as a set of OS processes chained with
anonymous pipes:

1. Open every redirect file up front. Any failure aborts before a single
   process is spawned.
2. Allocate one pipe per stage boundary.
3. Spawn stages left to right. As soon as a stage is running, the
   orchestrator closes its own copies of that stage's descriptors, so EOF
   propagates and nothing waits on a descriptor only the shell holds.
4. Wait for whichever stage exits next until all have exited.

A spawn failure or an interruption part-way through terminates the stages
already running. The pipeline's status is the last stage's status (or,
with ``pipefail``, the first failing stage's status).
"""

from __future__ import annotations

import logging
import os
import subprocess
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from pathlib import Path
from typing import BinaryIO, Dict, List, Mapping, Optional, Union

from ..errors import (
    EXIT_COMMAND_NOT_FOUND,
    EXIT_COULD_NOT_EXECUTE,
    RuntimeIOError,
    SpawnError,
)
from ..plan import ExecutionPlan, FileSink, FileSource, PipelineStage
from ..process_utils import (
    build_search_path,
    build_stage_env,
    popen_with_validation,
    resolve_program,
)
from .builtins import BUILTINS, Builtin, Session
from .exits import ExitStatus
from .handles import Pipe, open_read_redirect, open_write_redirect

logger = logging.getLogger(__name__)

# What Popen accepts for stdin/stdout: inherit (None), a raw fd, or a file.
StreamArg = Union[None, int, BinaryIO]


class StageState(Enum):
    PLANNED = "planned"
    SPAWNING = "spawning"
    RUNNING = "running"
    EXITED = "exited"
    SIGNALED = "signaled"
    SPAWN_FAILED = "spawn_failed"

    @property
    def terminal(self) -> bool:
        return not _TRANSITIONS[self]


_TRANSITIONS = {
    StageState.PLANNED: {StageState.SPAWNING},
    StageState.SPAWNING: {StageState.RUNNING, StageState.SPAWN_FAILED},
    StageState.RUNNING: {StageState.EXITED, StageState.SIGNALED},
    StageState.EXITED: set(),
    StageState.SIGNALED: set(),
    StageState.SPAWN_FAILED: set(),
}


@dataclass
class StageRun:
    """Runtime record of one stage."""

    stage: PipelineStage
    state: StageState = StageState.PLANNED
    process: Optional[subprocess.Popen] = None
    status: Optional[ExitStatus] = None

    @property
    def index(self) -> int:
        return self.stage.index

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    def advance(self, state: StageState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"stage {self.index} ({self.stage.program}): "
                f"illegal transition {self.state.value} -> {state.value}"
            )
        self.state = state

    def finish(self, status: ExitStatus, terminated: bool = False) -> None:
        """Record the final status; terminated stages always count as signaled."""
        self.status = status
        if terminated or status.signaled:
            self.advance(StageState.SIGNALED)
        else:
            self.advance(StageState.EXITED)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    runs: List[StageRun]
    status: ExitStatus
    completion_order: List[int] = field(default_factory=list)

    @property
    def statuses(self) -> List[Optional[ExitStatus]]:
        return [run.status for run in self.runs]

    @property
    def failed_stages(self) -> List[StageRun]:
        """Stages that ended unsuccessfully (including the last)."""
        return [
            run
            for run in self.runs
            if run.status is not None and not run.status.success
        ]

    @property
    def success(self) -> bool:
        return self.status.success


class PipelineExecutor:
    """Executes validated pipelines."""

    def __init__(
        self,
        session: Optional[Session] = None,
        search_path: Optional[str] = None,
        pipefail: bool = False,
        home_dir: Optional[Path] = None,
        builtins: Optional[Mapping[str, Builtin]] = None,
    ):
        """Initialize executor.

        Args:
            session: Shell state (working directory); defaults to the CWD
            search_path: Program search path (default: $TYPESH_PATH + $PATH)
            pipefail: Report the first failing stage instead of the last stage
            home_dir: Home directory exported to stages as TYPESH_HOME
            builtins: In-process builtins by name (default: cd)
        """
        self.session = session or Session.here()
        self.search_path = search_path
        self.pipefail = pipefail
        self.home_dir = home_dir
        self.builtins = dict(BUILTINS if builtins is None else builtins)

    def execute(self, plan: ExecutionPlan) -> PipelineResult:
        """Run ``plan`` to completion.

        Raises:
            RuntimeIOError: A redirect file could not be opened (nothing ran).
            SpawnError: A stage could not be started; earlier stages were
                terminated. ``error.result`` holds the per-stage records.
            KeyboardInterrupt: Re-raised after the stages already spawned
                have been terminated and reaped.
        """
        runs = [StageRun(stage) for stage in plan.stages]
        completion_order: List[int] = []
        logger.debug("executing: %s", plan.describe())

        with ExitStack() as stack:
            inputs, outputs = self._open_redirects(plan, stack)
            pipes = [stack.enter_context(Pipe()) for _ in range(len(plan) - 1)]

            try:
                self._spawn_all(runs, inputs, outputs, pipes, completion_order)
                self._wait_all(runs, completion_order)
            except SpawnError as e:
                self._terminate(runs, completion_order)
                e.result = PipelineResult(
                    runs=runs,
                    status=ExitStatus(code=e.exit_code),
                    completion_order=completion_order,
                )
                raise
            except BaseException:
                logger.debug("interrupted; terminating running stages")
                self._terminate(runs, completion_order)
                raise

        status = self._aggregate(runs)
        return PipelineResult(runs=runs, status=status, completion_order=completion_order)

    def _open_redirects(self, plan: ExecutionPlan, stack: ExitStack):
        """Open all redirect files, registering them on ``stack``."""
        inputs: Dict[int, BinaryIO] = {}
        outputs: Dict[int, BinaryIO] = {}
        cwd = self.session.current_dir

        for stage in plan.stages:
            source, sink = stage.read_source, stage.write_sink
            if isinstance(source, FileSource):
                try:
                    inputs[stage.index] = stack.enter_context(
                        open_read_redirect(cwd / source.path)
                    )
                except OSError as e:
                    raise RuntimeIOError(stage.index, source.path, e.strerror or str(e)) from e
            if isinstance(sink, FileSink):
                try:
                    outputs[stage.index] = stack.enter_context(
                        open_write_redirect(cwd / sink.path, sink.mode)
                    )
                except OSError as e:
                    raise RuntimeIOError(stage.index, sink.path, e.strerror or str(e)) from e

        return inputs, outputs

    def _spawn_all(
        self,
        runs: List[StageRun],
        inputs: Dict[int, BinaryIO],
        outputs: Dict[int, BinaryIO],
        pipes: List[Pipe],
        completion_order: List[int],
    ) -> None:
        last = len(runs) - 1
        env = build_stage_env(self.session.current_dir, self.home_dir)
        search_path = self.search_path or build_search_path(env)

        for run in runs:
            i = run.index
            stdin: StreamArg = pipes[i - 1].read_fd if i > 0 else inputs.get(i)
            stdout: StreamArg = pipes[i].write_fd if i < last else outputs.get(i)

            run.advance(StageState.SPAWNING)
            builtin = self.builtins.get(run.stage.program)
            if builtin is not None:
                run.advance(StageState.RUNNING)
                run.finish(builtin.run(self.session, list(run.stage.args)))
                completion_order.append(i)
                # The session may have moved; later stages start there.
                env = build_stage_env(self.session.current_dir, self.home_dir)
            else:
                try:
                    run.process = self._spawn(run.stage, stdin, stdout, env, search_path)
                except SpawnError as e:
                    run.advance(StageState.SPAWN_FAILED)
                    e.stage_index = i
                    raise
                run.advance(StageState.RUNNING)
                logger.debug("spawned stage %d: %s (pid %d)", i, run.stage.program, run.pid)

            # Ownership has passed to the child: drop the orchestrator's copies.
            if i > 0:
                pipes[i - 1].close_read()
            if i < last:
                pipes[i].close_write()
            for handles in (inputs, outputs):
                handle = handles.pop(i, None)
                if handle is not None:
                    handle.close()

    def _spawn(
        self,
        stage: PipelineStage,
        stdin: StreamArg,
        stdout: StreamArg,
        env: dict,
        search_path: str,
    ) -> subprocess.Popen:
        cwd = self.session.current_dir
        executable = resolve_program(stage.program, cwd, search_path)
        if executable is None:
            raise SpawnError(stage.program, "command not found", EXIT_COMMAND_NOT_FOUND)

        try:
            return popen_with_validation(
                stage.argv,
                executable=executable,
                stdin=stdin,
                stdout=stdout,
                stderr=None,
                cwd=cwd,
                env=env,
            )
        except FileNotFoundError as e:
            raise SpawnError(stage.program, "command not found", EXIT_COMMAND_NOT_FOUND) from e
        except PermissionError as e:
            raise SpawnError(stage.program, "permission denied", EXIT_COULD_NOT_EXECUTE) from e
        except (OSError, ValueError) as e:
            raise SpawnError(stage.program, str(e), EXIT_COULD_NOT_EXECUTE) from e

    def _wait_all(self, runs: List[StageRun], completion_order: List[int]) -> None:
        pending = {run.pid: run for run in runs if run.state is StageState.RUNNING}
        while pending:
            run = self._wait_any(pending)
            del pending[run.pid]
            completion_order.append(run.index)

    @staticmethod
    def _wait_any(pending: Dict[int, StageRun]) -> StageRun:
        """Block until some pending stage exits, then reap it.

        ``waitid`` with WNOWAIT reports the first child to exit without
        reaping it, so ``Popen.wait`` still collects the status. If the
        exited child is not one of ours (or the platform lacks ``waitid``),
        block on our earliest pending stage instead.
        """
        run = None
        if hasattr(os, "waitid"):
            try:
                info = os.waitid(os.P_ALL, 0, os.WEXITED | os.WNOWAIT)
            except ChildProcessError:
                info = None
            if info is not None:
                run = pending.get(info.si_pid)
        if run is None:
            run = next(iter(pending.values()))

        returncode = run.process.wait()
        run.finish(ExitStatus.from_returncode(returncode))
        return run

    @staticmethod
    def _terminate(runs: List[StageRun], completion_order: List[int]) -> None:
        """Stop every running stage; each is recorded as signaled.

        A builtin interrupted part-way has no process and is recorded as
        a failure.
        """
        running = [run for run in runs if run.state is StageState.RUNNING]
        for run in running:
            if run.process is not None:
                run.process.terminate()
        for run in running:
            if run.process is not None:
                status = ExitStatus.from_returncode(run.process.wait())
            else:
                status = ExitStatus.FAILURE
            run.finish(status, terminated=True)
            completion_order.append(run.index)
            logger.debug("terminated stage %d: %s", run.index, run.stage.program)

    def _aggregate(self, runs: List[StageRun]) -> ExitStatus:
        for run in runs[:-1]:
            if not run.status.success:
                logger.warning(
                    "stage %d (%s) exited with status %s",
                    run.index,
                    run.stage.program,
                    run.status,
                )
        if self.pipefail:
            return reduce(ExitStatus.reduce_worst, (run.status for run in runs))
        return runs[-1].status


__all__ = ["PipelineExecutor", "PipelineResult", "StageRun", "StageState"]
