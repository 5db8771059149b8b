"""Top-level decompile entry point.

A call to :meth:`Orchestrator.decompile` selects a stage chain for the
artifact, runs every stage in its own workspace, forwards progress events to
the caller as they are parsed, stages the final output into the virtual
filesystem and returns a :class:`DecompileResult`. Every failure surfaces as
exactly one :class:`DecompileError`.

Example:
    orchestrator = Orchestrator(EnvironmentManager().load())
    result = await orchestrator.decompile(
        "app.apk", progress_callback=lambda event: print(event.message)
    )
    print(result.virtual_path)  # decompileFs:/app.apk
"""

import asyncio
import inspect
import logging
import os
import uuid
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Set, Tuple, Union

import decompile_tools.backends  # noqa: F401  registers the backends
from config.manager import EnvironmentManager, env_manager
from decompile_tools.command_executor import (
    ProcessHandle,
    ProcessRunner,
    RunOptions,
    Workspace,
    WorkspaceManager,
)
from decompile_tools.constants import GENERATOR_NAME, GENERATOR_VERSION
from decompile_tools.dispatcher import PipelineDispatcher, Stage
from decompile_tools.errors import (
    AnchorBusy,
    ArtifactMissing,
    DecompileCancelled,
    OutputMissing,
    SpawnFailure,
    StagingIO,
    ToolFailed,
)
from decompile_tools.fallback import FallbackPolicy
from decompile_tools.interfaces import BackendInterface
from decompile_tools.locator import ToolLocator
from decompile_tools.plugin import BackendRegistry, registry as backend_registry
from decompile_tools.progress import STDERR, STDOUT
from decompile_tools.stager import OutputStager
from decompile_tools.types import (
    Artifact,
    DecompileResult,
    DirOutput,
    ProgressEvent,
    ResultShape,
    StageOutcome,
)
from decompile_tools.vfs import MemoryFileSystem, VirtualFileSystem

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


def render_header(artifact_path: str) -> str:
    return (
        "/** \n"
        f"*  Generator: {GENERATOR_NAME}@{GENERATOR_VERSION}\n"
        f"*  Target:    {artifact_path}\n"
        "**/\n\n"
    )


class CancellationToken:
    """Signals a running job that the caller no longer wants the result."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class Job:
    """State of one decompile call, driven stage by stage by the orchestrator."""

    artifact: Artifact
    stages: Tuple[Stage, ...]
    cancel_token: Optional[CancellationToken] = None
    stage_index: int = 0
    workspaces: List[Workspace] = field(default_factory=list)
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def cancelled(self) -> bool:
        return self.cancel_token is not None and self.cancel_token.is_cancelled

    @property
    def current_stage(self) -> Stage:
        return self.stages[self.stage_index]


class Orchestrator:
    """Owns the virtual filesystem namespace and runs decompile jobs."""

    def __init__(
        self,
        settings: Optional[EnvironmentManager] = None,
        vfs: Optional[VirtualFileSystem] = None,
        runner: Optional[ProcessRunner] = None,
        workspaces: Optional[WorkspaceManager] = None,
        locator: Optional[ToolLocator] = None,
        fallback: Optional[FallbackPolicy] = None,
        registry: Optional[BackendRegistry] = None,
    ):
        if settings is None:
            settings = env_manager.load()
        self.settings = settings
        self.scheme = self.settings.get_setting("virtual_fs_scheme")
        self.vfs = vfs or MemoryFileSystem(self.scheme)
        self.runner = runner or ProcessRunner()
        self.workspaces = workspaces or WorkspaceManager(self.settings.get_workspace_settings())
        self.locator = locator or ToolLocator(self.settings)
        self.fallback = fallback or FallbackPolicy()
        self.registry = registry or backend_registry
        self.dispatcher = PipelineDispatcher(self.settings)
        self.stager = OutputStager(self.vfs, self.scheme)
        self.kill_on_cancel = bool(self.settings.get_setting("kill_on_cancel", True))

        self._active_anchors: Set[str] = set()
        self._background: Set[asyncio.Task] = set()

    @property
    def virtual_root(self) -> str:
        return self.stager.root

    def reveal(self) -> str:
        """The URI a host mounts to browse decompiled output."""
        return self.virtual_root

    async def decompile(
        self,
        artifact_path: Union[str, os.PathLike],
        progress_callback: Optional[ProgressSink] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DecompileResult:
        path = os.fspath(artifact_path)
        if not os.path.isfile(path):
            raise ArtifactMissing(f"Cannot decompile: {path}. File does not exist.")

        artifact = Artifact.from_path(path)
        job = Job(artifact, self.dispatcher.select(artifact.kind), cancel_token)
        anchor = artifact.basename
        if anchor in self._active_anchors:
            raise AnchorBusy(
                f"Another job is already decompiling an artifact named {anchor}"
            )
        self._active_anchors.add(anchor)

        logger.info(
            f"Decompiling {path} ({artifact.kind}) with "
            f"{[stage.tool_id for stage in job.stages]} [job {job.job_id}]"
        )

        stack = AsyncExitStack()
        try:
            return await self._run(job, stack, progress_callback)
        except (DecompileCancelled, asyncio.CancelledError):
            if self.kill_on_cancel:
                for workspace in job.workspaces:
                    await workspace.terminate_processes()
            else:
                self._release_in_background(stack.pop_all(), job)
            raise
        finally:
            self._active_anchors.discard(anchor)
            await stack.aclose()

    async def drain(self) -> None:
        """Wait for workspaces released in the background after cancellation."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _run(
        self, job: Job, stack: AsyncExitStack, sink: Optional[ProgressSink]
    ) -> DecompileResult:
        current = job.artifact.path
        backend = None
        outcome = None

        for index, stage in enumerate(job.stages):
            job.stage_index = index
            self._check_cancelled(job)
            if stage.announce is not None:
                await self._emit(sink, stage.announce)

            backend = self.registry.create_backend(stage.tool_id, self.settings)
            outcome = await self._run_stage(job, backend, current, stack, sink)
            current = outcome.output_path

        return self._finalize(job, backend, outcome)

    async def _run_stage(
        self,
        job: Job,
        backend: BackendInterface,
        artifact_path: str,
        stack: AsyncExitStack,
        sink: Optional[ProgressSink],
    ) -> StageOutcome:
        backend.check_artifact(artifact_path)
        tool_path = self.locator.resolve(backend.tool_id)

        workspace = await stack.enter_async_context(
            self.workspaces.workspace(prefix=backend.tool_id)
        )
        job.workspaces.append(workspace)

        async def attempt(binary: str) -> StageOutcome:
            build = backend.build(binary, artifact_path, str(workspace.path))
            # Variants share the workspace; never accept a previous attempt's output
            try:
                build.expected_output.clear()
            except OSError as e:
                raise StagingIO(
                    f"Could not clear {build.expected_output.path} before running {binary}: {e}",
                    tool_id=backend.tool_id,
                ) from e
            handle = await self.runner.run(
                build.command,
                build.args,
                RunOptions(
                    use_shell=build.use_shell,
                    on_stdout=self._forwarder(backend, STDOUT, sink),
                    on_stderr=self._forwarder(backend, STDERR, sink),
                ),
            )
            workspace.track(handle)
            exit_code = await self._wait(handle, job)

            if not handle.spawned:
                raise SpawnFailure(
                    f"Could not start {binary}: {handle.spawn_error}",
                    tool_id=backend.tool_id,
                    diagnostic=handle.diagnostic(),
                )
            if exit_code != 0:
                raise ToolFailed(
                    f"Failed to run decompiler {backend.tool_id} (exit code {exit_code})",
                    tool_id=backend.tool_id,
                    exit_code=exit_code,
                    diagnostic=handle.diagnostic(),
                )
            if not build.expected_output.exists():
                raise OutputMissing(
                    f"Output not produced by {backend.tool_id}: {build.expected_output.path}",
                    tool_id=backend.tool_id,
                    exit_code=exit_code,
                    diagnostic=handle.diagnostic(),
                )
            return StageOutcome(
                tool_id=backend.tool_id,
                exit_code=exit_code,
                output=build.expected_output,
                binary=binary,
            )

        return await self.fallback.run(backend.variants(tool_path), attempt)

    def _finalize(
        self, job: Job, backend: BackendInterface, outcome: StageOutcome
    ) -> DecompileResult:
        anchor = job.artifact.basename

        if isinstance(outcome.output, DirOutput):
            staged = self.stager.stage(self.virtual_root, anchor, outcome.output_path)
            return DecompileResult(
                exit_code=outcome.exit_code,
                payload=None,
                virtual_path=self.stager.uri(anchor),
                shape=ResultShape.MULTI,
                source_language=backend.source_language,
                staged_files=staged,
            )

        try:
            with open(outcome.output_path, "r", encoding="utf-8", errors="replace") as f:
                decompiled = render_header(job.artifact.path) + f.read()
        except OSError as e:
            raise StagingIO(f"Failed to read {outcome.output_path}: {e}") from e

        virtual_path = self.stager.write(
            self.virtual_root, anchor + backend.virtual_extension, decompiled.encode("utf-8")
        )
        return DecompileResult(
            exit_code=outcome.exit_code,
            payload=decompiled,
            virtual_path=virtual_path,
            shape=ResultShape.SINGLE,
            source_language=backend.source_language,
            staged_files=[virtual_path],
        )

    def _check_cancelled(self, job: Job) -> None:
        if job.cancelled:
            raise DecompileCancelled(f"Decompiling {job.artifact.path} was cancelled")

    async def _wait(self, handle: ProcessHandle, job: Job) -> Optional[int]:
        """Wait for the process, or stop waiting as soon as the job is cancelled."""
        if job.cancel_token is None:
            return await handle.wait()

        exit_task = asyncio.ensure_future(handle.wait())
        cancel_task = asyncio.ensure_future(job.cancel_token.wait())
        try:
            await asyncio.wait({exit_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not exit_task.done():
                exit_task.cancel()

        if exit_task.done() and not exit_task.cancelled():
            return exit_task.result()
        raise DecompileCancelled(
            f"Decompiling {job.artifact.path} was cancelled",
            tool_id=job.current_stage.tool_id,
        )

    def _forwarder(
        self, backend: BackendInterface, stream: str, sink: Optional[ProgressSink]
    ) -> Callable[[str], Awaitable[None]]:
        async def forward(chunk: str) -> None:
            logger.debug(f"[{backend.tool_id}:{stream}] {chunk}")
            event = backend.parse_progress(stream, chunk)
            if event is not None:
                await self._emit(sink, event)

        return forward

    async def _emit(self, sink: Optional[ProgressSink], event: ProgressEvent) -> None:
        """Deliver one event; a failing sink never fails the job."""
        if sink is None:
            return
        try:
            result = sink(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"Progress callback raised on '{event.message}': {e}")

    def _release_in_background(self, stack: AsyncExitStack, job: Job) -> None:
        async def release() -> None:
            try:
                await stack.aclose()
            except Exception as e:
                logger.warning(f"Releasing workspaces of cancelled job {job.job_id} failed: {e}")

        task = asyncio.create_task(release())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
