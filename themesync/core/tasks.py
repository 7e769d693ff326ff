"""
Task composition: sequential fold and parallel join over async steps.

A step is ``async def step(context) -> Outcome``. It reports success with
``Ok(context)`` and failure with ``Err(reason)``. Returning ``None`` is
shorthand for ``Ok(context)`` with the context it received.
"""
import asyncio
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Optional,
    Sequence,
    Set,
    TypeVar,
    Union,
)

from .exceptions import TaskTimeout
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the (possibly updated) context"""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying the failure reason (usually an exception)"""
    reason: Any

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Ok, Err]
Step = Callable[[Any], Awaitable[Optional[Outcome]]]
DoneCallback = Callable[[Outcome], None]

# Tasks abandoned by run_parallel are kept referenced until they finish
_orphans: Set[asyncio.Task] = set()


async def _run_step(step: Step, context: Any) -> Outcome:
    """Run one step, converting stray exceptions into Err"""
    try:
        result = await step(context)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        name = getattr(step, "__name__", repr(step))
        logger.exception(f"Step {name} raised")
        return Err(e)
    if result is None:
        return Ok(context)
    if not isinstance(result, (Ok, Err)):
        return Ok(result)
    return result


def _finish(outcome: Outcome, on_done: Optional[DoneCallback]) -> Outcome:
    if on_done is not None:
        on_done(outcome)
    return outcome


async def run_sequence(
    steps: Sequence[Step],
    initial: Any = None,
    on_done: Optional[DoneCallback] = None,
) -> Outcome:
    """
    Run steps one after another, threading the context through them.

    Step N+1 starts only after step N completed. The first Err stops the
    chain; no further steps run.

    Args:
        steps: Ordered steps
        initial: Context handed to the first step
        on_done: Optional callback, called exactly once with the final outcome

    Returns:
        Ok(final context) or the first Err
    """
    outcome: Outcome = Ok(initial)
    for step in steps:
        outcome = await _run_step(step, outcome.value)
        if isinstance(outcome, Err):
            break
    return _finish(outcome, on_done)


def _abandon(tasks: Set[asyncio.Task]) -> None:
    for task in tasks:
        _orphans.add(task)
        task.add_done_callback(_orphans.discard)


async def run_parallel(
    steps: Sequence[Step],
    initial: Any = None,
    on_done: Optional[DoneCallback] = None,
    time_limit: Optional[float] = None,
) -> Outcome:
    """
    Run steps concurrently against the same initial context.

    Completes with Ok(initial) once every step succeeded, or with the first
    Err as soon as any step fails. Steps still in flight at that point are
    not cancelled; their results are ignored.

    Args:
        steps: Independent steps
        initial: Context shared by all steps
        on_done: Optional callback, called exactly once with the outcome
        time_limit: Seconds after which remaining steps are abandoned

    Returns:
        Ok(initial), the first Err, or Err(TaskTimeout)
    """
    if not steps:
        return _finish(Ok(initial), on_done)

    pending: Set[asyncio.Task] = {
        asyncio.ensure_future(_run_step(step, initial)) for step in steps
    }
    loop = asyncio.get_running_loop()
    deadline = loop.time() + time_limit if time_limit is not None else None

    while pending:
        timeout = None if deadline is None else max(0.0, deadline - loop.time())
        done, pending = await asyncio.wait(
            pending, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
        if not done:
            logger.error(
                f"Parallel batch exceeded its time limit ({time_limit}s), "
                f"{len(pending)} task(s) abandoned"
            )
            _abandon(pending)
            return _finish(Err(TaskTimeout(f"exceeded {time_limit}s")), on_done)

        for task in done:
            outcome = task.result()
            if isinstance(outcome, Err):
                _abandon(pending)
                return _finish(outcome, on_done)

    return _finish(Ok(initial), on_done)

