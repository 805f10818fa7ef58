"""Manually carrying bindings across a thread or async boundary.

Bindings are local to the thread (and asyncio Context) that made them, and a
provide call has always returned - popping its binding - before any callback
it scheduled gets to run. Nothing here happens automatically: take a snapshot
where the bindings are visible, then re-provide it where they are needed.

```
with USER.set("alice"):
    executor.submit(snapshot.bind(render))   # render sees 'alice' in the worker thread
```
"""
import typing as ty
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import wraps
from types import MappingProxyType

from typing_extensions import ParamSpec

from . import _registry
from .log import getLogger

P = ParamSpec("P")
R = ty.TypeVar("R")

logger = getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Every binding visible at the moment of capture, for every context."""

    stacks: ty.Mapping[_registry.ContextId, _registry.Stack] = field(
        default_factory=lambda: MappingProxyType(dict())
    )

    def run(self, func: ty.Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
        """Call func with exactly the captured bindings in place, then put back
        whatever bindings the calling thread had before.
        """
        logger.debug("Re-providing snapshot", contexts=len(self.stacks))
        with _registry.restored(self.stacks):
            return func(*args, **kwargs)

    def __call__(self, sub_routine: ty.Callable[[], R]) -> R:
        # this makes a Snapshot a Provider, so it can be composed.
        return self.run(sub_routine)


def snapshot() -> Snapshot:
    return Snapshot(MappingProxyType(_registry.current_stacks()))


def bind(func: ty.Callable[P, R]) -> ty.Callable[P, R]:
    """Snapshot the current bindings now; apply them whenever the returned function is called."""
    captured = snapshot()

    @wraps(func)
    def with_snapshot(*args: P.args, **kwargs: P.kwargs) -> R:
        return captured.run(func, *args, **kwargs)

    return with_snapshot


class ContextfulInit(ty.TypedDict):
    """A dictionary corresponding to the initializer API expected by concurrent.futures.Executor"""

    initializer: ty.Callable[[], None]


def initcontext() -> ContextfulInit:
    """`ThreadPoolExecutor(**initcontext())` gives a ThreadPoolExecutor whose worker
    threads start out with the current bindings, for the whole life of the thread.
    """
    captured = snapshot()

    def snapshot_initializer() -> None:
        _registry.install(captured.stacks)

    return ContextfulInit(initializer=snapshot_initializer)


def contextful_threadpool_executor(
    max_workers: ty.Optional[int] = None,
) -> ThreadPoolExecutor:
    return ThreadPoolExecutor(
        max_workers=max_workers,
        thread_name_prefix="contextful_threadpool_executor",
        **initcontext(),
    )
