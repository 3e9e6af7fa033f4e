"""
Polling agent: claims jobs from the coordinator and runs them locally.

Architecture:
- start() registers the machine (tool names + JSON Schemas) and spawns the
  poll loop as a background task
- Each iteration long-polls listJobs, fans the batch out concurrently and
  waits for every job to settle before polling again
- Per-job problems (bad input, schema mismatch, handler errors) become
  rejection results; iteration problems (transport errors) are counted and
  retried forever
- stop() is cooperative: the loop exits at its next iteration boundary and
  in-flight jobs are allowed to finish
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .config import (
    DEFAULT_POLL_LIMIT,
    DEFAULT_RETRY_AFTER_SECONDS,
    DEFAULT_WAIT_TIME_SECONDS,
    JOB_POLL_INTERVAL_SECONDS,
    TERMINAL_JOB_STATUSES,
)
from .errors import AgentRPCError, ValidationError
from .execute import Result, execute_fn, serialize_error
from .models import Job, JobStatus, MachineRegistration
from .schema import validate_input
from .tools import ToolRegistration

logger = logging.getLogger("agentrpc.polling")

INVALID_INPUT_MESSAGE = "Function was called with invalid invalid format. Expected an object."


class RpcClient(Protocol):
    """The subset of JsonRpcClient the agent depends on."""

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any: ...


class AgentState(str, Enum):
    IDLE = "idle"
    REGISTERING = "registering"
    POLLING = "polling"
    STOPPED = "stopped"


@dataclass(frozen=True)
class JobOutcome:
    """Final state of a job created through create_and_poll_job."""

    status: str
    result: Any
    result_type: str


class PollingAgent:
    """
    Long-poll loop for one set of tools.

    The tool set is fixed at construction. Create a new agent to serve a
    different set.
    """

    def __init__(
        self,
        cluster_id: str | None,
        tools: Sequence[ToolRegistration],
        client: RpcClient,
        *,
        retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
        poll_limit: int = DEFAULT_POLL_LIMIT,
        wait_time: int = DEFAULT_WAIT_TIME_SECONDS,
        job_timeout: float | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.cluster_id = cluster_id
        self.tools: tuple[ToolRegistration, ...] = tuple(tools)
        self.client = client
        self.retry_after = retry_after
        self.poll_limit = poll_limit
        self.wait_time = wait_time
        self.job_timeout = job_timeout
        self.log = log or logger

        self.polling = False
        self.state = AgentState.IDLE
        self.failure_count = 0

        self._by_name = {t.name: t for t in self.tools}
        self._wake: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    # --- Lifecycle ---

    async def start(self) -> None:
        """
        Register the machine, then start polling in the background.

        Returns once registration is done; the loop keeps running until
        stop() is called.
        """
        if self.state is not AgentState.IDLE:
            raise AgentRPCError(f"Polling agent cannot start from state '{self.state.value}'")

        self.log.info("Starting polling agent")
        self.state = AgentState.REGISTERING
        try:
            await register_machine(self.client, self.tools)
        except Exception:
            self.state = AgentState.IDLE
            raise

        self.state = AgentState.POLLING
        self.polling = True
        self._wake = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(), name="agentrpc-polling-agent")

    async def stop(self) -> None:
        """Ask the loop to exit and wait for the current iteration to settle."""
        self.log.info("Stopping polling agent")
        self.polling = False
        if self._wake is not None:
            self._wake.set()

        if self._task is not None:
            await self._task
            self._task = None

        self.state = AgentState.STOPPED

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- Loop ---

    async def _run_loop(self) -> None:
        while self.polling:
            try:
                await self._poll_iteration()
                if self.failure_count > 0:
                    self.log.info(f"Poll iteration recovered after {self.failure_count} failures")
                    self.failure_count = 0
            except Exception as e:
                self.failure_count += 1
                self.log.error(f"Failed poll iteration (failure_count={self.failure_count}): {e}")

            await self._sleep(self.retry_after)

        self.log.info("Polling agent stopped")

    async def _sleep(self, seconds: float) -> None:
        """Wait between iterations, returning early if stop() is called."""
        if self._wake is None or self._wake.is_set():
            return
        if seconds <= 0:
            # Still yield so stop() and sibling tasks get a turn between polls
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _poll_iteration(self) -> None:
        if not self.cluster_id:
            raise AgentRPCError("Failed to poll. Could not find clusterId")

        jobs = await self.client.request(
            "listJobs",
            {
                "clusterId": self.cluster_id,
                "tools": ",".join(self.tool_names),
                "status": "pending",
                "acknowledge": True,
                "limit": self.poll_limit,
                "waitTime": self.wait_time,
            },
        )

        results = await asyncio.gather(
            *(self._process_call(job) for job in jobs or []),
            return_exceptions=True,
        )

        if results:
            statuses = ["rejected" if isinstance(r, BaseException) else "fulfilled" for r in results]
            self.log.debug(f"Completed poll iteration: {statuses}")
            for r in results:
                if isinstance(r, BaseException):
                    self.log.warning(f"Job processing failed: {type(r).__name__}: {r}")

    # --- Per-job dispatch ---

    async def _process_call(self, raw_job: Any) -> None:
        job = Job.model_validate(raw_job)

        registration = self._by_name.get(job.function)
        if registration is None:
            self.log.warning(f"Received call for unknown function: {job.function}")
            return

        self.log.debug(f"Executing job {job.id} ({job.function})")

        if not isinstance(job.input, Mapping):
            self.log.warning(f"{job.function}: {INVALID_INPUT_MESSAGE}")
            await self._complete(
                job,
                Result(
                    type="rejection",
                    content=serialize_error(AgentRPCError(INVALID_INPUT_MESSAGE)),
                    function_execution_time=0,
                ),
            )
            return

        try:
            args = validate_input(registration.schema, job.input)
        except ValidationError as e:
            for issue in e.issues:
                self.log.warning(
                    f"{job.function}: input does not match schema at {list(issue.path)}: {issue.message}"
                )
            await self._complete(
                job,
                Result(type="rejection", content=serialize_error(e), function_execution_time=0),
            )
            return

        result = await execute_fn(registration.handler, args, timeout=self.job_timeout)
        await self._complete(job, result)

    async def _complete(self, job: Job, result: Result) -> None:
        self.log.debug(
            f"Persisting job result {job.id} ({job.function}): "
            f"{result.type} in {result.function_execution_time:.1f}ms"
        )
        await self.client.request(
            "createJobResult",
            {
                "jobId": job.id,
                "clusterId": self.cluster_id,
                "result": result.content,
                "resultType": result.type,
                "meta": {"functionExecutionTime": result.function_execution_time},
            },
        )


# --- Protocol helpers ---


async def register_machine(
    client: RpcClient,
    tools: Sequence[ToolRegistration] | None = None,
) -> MachineRegistration:
    """Upsert this machine's tool set with the coordinator."""
    tools = tools or ()
    logger.info(f"Registering machine with tools: {[t.name for t in tools]}")

    response = await client.request(
        "createMachine",
        {"tools": [t.to_machine_tool() for t in tools]},
    )
    registration = MachineRegistration.model_validate(response or {})
    logger.debug(f"Machine registered (clusterId={registration.cluster_id})")
    return registration


async def poll_for_job_completion(
    client: RpcClient,
    cluster_id: str,
    job_id: str,
    initial_status: str | None = None,
    initial_result: Any = "",
    initial_result_type: str = "rejection",
    interval: float = JOB_POLL_INTERVAL_SECONDS,
    wait_time: int = DEFAULT_WAIT_TIME_SECONDS,
) -> JobOutcome:
    """
    Poll getJob until the job reaches a terminal status.

    There is no attempt limit; wrap the call in asyncio.timeout() for a
    deadline.
    """
    status = initial_status
    result = initial_result
    result_type = initial_result_type

    while status not in TERMINAL_JOB_STATUSES:
        details = JobStatus.model_validate(
            await client.request(
                "getJob",
                {"clusterId": cluster_id, "jobId": job_id, "waitTime": wait_time},
            )
        )
        status = details.status
        result = details.result or ""
        result_type = details.result_type or "rejection"

        if status in TERMINAL_JOB_STATUSES:
            break
        await asyncio.sleep(interval)

    return JobOutcome(status=status, result=result, result_type=result_type)  # type: ignore[arg-type]


async def create_and_poll_job(
    client: RpcClient,
    cluster_id: str,
    tool_name: str,
    input: Any,
    wait_time: int = DEFAULT_WAIT_TIME_SECONDS,
    interval: float = JOB_POLL_INTERVAL_SECONDS,
) -> JobOutcome:
    """Create a job for a tool and wait for its final result."""
    created = JobStatus.model_validate(
        await client.request(
            "createJob",
            {"tool": tool_name, "input": input, "clusterId": cluster_id, "waitTime": wait_time},
        )
    )
    logger.debug(f"Created job {created.id} for {tool_name} (status={created.status})")

    return await poll_for_job_completion(
        client,
        cluster_id,
        created.id,  # type: ignore[arg-type]
        initial_status=created.status,
        initial_result=created.result or "",
        initial_result_type=created.result_type or "rejection",
        interval=interval,
        wait_time=wait_time,
    )
