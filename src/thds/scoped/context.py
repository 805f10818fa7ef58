"""Like React's Context API, but for ordinary function calls.

A value provided somewhere up the call stack can be consumed by anything
called (directly or transitively) beneath it, without being passed down
as an argument, and stops being visible as soon as the providing call returns:

```
USER = create_context("user")

def handler():
    return USER.provide("alice", render)

def render():
    return f"hello {USER.consume()}"   # 'hello alice'
```

Nested provides on the same context shadow outer ones for their duration.
Different contexts never interfere with each other, and bindings are
local to the current thread.

Create contexts at module level, just like ContextVars.
"""
import contextlib
import logging
import typing as ty
from dataclasses import dataclass

from . import _registry, config
from ._caller import caller_module
from .log import getLogger

T = ty.TypeVar("T")
R = ty.TypeVar("R")

TRACE = config.item("thds.scoped.context.trace", False, parse=config.parse_bool)
# log every bind and unbind at DEBUG. Noisy; meant for tracking down a missing provider.

logger = getLogger(__name__)


def _tracing() -> bool:
    """TRACE, plus making sure this module's DEBUG records actually get emitted -
    getLogger pinned the logger to the package-wide level, which defaults to INFO.
    """
    if not TRACE():
        return False
    if logger.logger.level > logging.DEBUG:
        logger.logger.setLevel(logging.DEBUG)
    return True


class NoProviderInScope(LookupError):
    def __init__(self, context_name: str):
        super().__init__(
            f"There is no value for context '{context_name}' available in this scope!"
            " You must provide a value somewhere up in the call stack, or use"
            " create_optional_context() instead of create_context() if you wish to"
            " consume it without a provider (e.g. by using a default value)."
        )
        self.context_name = context_name


@contextlib.contextmanager
def _binding(context_id: _registry.ContextId, name: str, value: T) -> ty.Iterator[T]:
    if not _tracing():
        with _registry.bound(context_id, value):
            yield value
        return

    with _registry.bound(context_id, value):
        logger.debug("bound", context=name, depth=_registry.depth(context_id))
        try:
            yield value
        finally:
            logger.debug("unbinding", context=name, depth=_registry.depth(context_id))


@dataclass(frozen=True)
class LoadedProvider(ty.Generic[T]):
    """A value waiting to be bound. Nothing is pushed until it is called,
    and it may be called any number of times.
    """

    context_id: _registry.ContextId
    context_name: str
    value: T

    def __call__(self, sub_routine: ty.Callable[[], R]) -> R:
        with _binding(self.context_id, self.context_name, self.value):
            return sub_routine()


class _BaseContext(ty.Generic[T]):
    __slots__ = ("_name", "_id")

    def __init__(self, name: str = ""):
        """The name is only for debugging and error messages; it defaults to
        the name of the module creating the context.
        """
        self._name = name or caller_module(2)
        self._id = _registry.mint(self._name)
        _registry.register(self._id)

    @property
    def name(self) -> str:
        return self._name

    @property
    def id(self) -> _registry.ContextId:
        return self._id

    @ty.overload
    def provide(self, value: T) -> LoadedProvider[T]:
        ...  # pragma: no cover

    @ty.overload
    def provide(self, value: T, sub_routine: ty.Callable[[], R]) -> R:
        ...  # pragma: no cover

    def provide(self, value: T, sub_routine: ty.Optional[ty.Callable[[], R]] = None):
        """Bind value for the duration of sub_routine and return its result.

        Without a sub_routine, returns a LoadedProvider that will do so when called,
        which is what compose_providers expects.
        """
        loaded_provider = LoadedProvider(self.id, self.name, value)
        if sub_routine is None:
            return loaded_provider
        return loaded_provider(sub_routine)

    def set(self, value: T) -> ty.ContextManager[T]:
        """provide, for the extent of a with block."""
        return _binding(self.id, self.name, value)

    def depth(self) -> int:
        """Number of active bindings for this context on the current thread."""
        return _registry.depth(self.id)

    def is_provided(self) -> bool:
        return _registry.peek(self.id) is not _registry.ABSENT

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Context(_BaseContext[T]):
    """consume() raises NoProviderInScope when nothing has been provided."""

    __slots__ = ()

    def consume(self) -> T:
        current = _registry.peek(self.id)
        if current is _registry.ABSENT:
            if _tracing():
                logger.warning("No provider in scope", context=self.name)
            raise NoProviderInScope(self.name)
        return current


class OptionalContext(_BaseContext[T]):
    """consume() returns the default when nothing has been provided."""

    __slots__ = ("_default",)

    def __init__(self, name: str = "", default: ty.Optional[T] = None):
        super().__init__(name or caller_module(2))
        self._default = default

    @property
    def default(self) -> ty.Optional[T]:
        return self._default

    def consume(self) -> ty.Optional[T]:
        current = _registry.peek(self.id)
        if current is _registry.ABSENT:
            return self.default
        return current


def create_context(name: str = "") -> Context[ty.Any]:
    return Context(name or caller_module(2))


def create_optional_context(name: str = "", default: ty.Any = None) -> OptionalContext[ty.Any]:
    return OptionalContext(name or caller_module(2), default)
