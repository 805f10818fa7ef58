"""Process-wide registry of value stacks, one per context.

Each stack lives inside its own ContextVar, so what is 'process-wide' is the
mapping from identifier to ContextVar - the stacks themselves are local to
the current thread (and to the current asyncio Context, which is a copy of
the creating one). Stacks are immutable tuples; pushing and popping replace
the tuple rather than mutating it, so a copied Context can never observe a
later push or pop made elsewhere.

Nothing outside this package should need to import this module.
"""
import contextlib
import contextvars as cv
import typing as ty
from uuid import uuid4

ContextId = ty.NewType("ContextId", str)
Stack = ty.Tuple[ty.Any, ...]

ABSENT: ty.Any = object()
# returned by peek on an empty stack. Compare with `is`.


class StackCorruption(AssertionError):
    """A pop was attempted on an empty stack. This means the push/pop pairing was broken,
    which cannot happen through the public API.
    """


class ContextAlreadyRegistered(KeyError):
    pass


_STACKS: ty.Dict[ContextId, cv.ContextVar[Stack]] = dict()
# never pruned - identifiers are unique and handles are expected to live at module level.


def mint(name: str) -> ContextId:
    return ContextId(f"{name}+{uuid4().hex}")


def register(context_id: ContextId) -> None:
    if context_id in _STACKS:
        raise ContextAlreadyRegistered(f"Context '{context_id}' has already been registered!")
    _STACKS[context_id] = cv.ContextVar(context_id, default=())


def push(context_id: ContextId, value: ty.Any) -> None:
    var = _STACKS[context_id]
    var.set(var.get() + (value,))


def pop(context_id: ContextId) -> None:
    var = _STACKS[context_id]
    stack = var.get()
    if not stack:
        raise StackCorruption(f"Attempted to pop the empty stack of context '{context_id}'")
    var.set(stack[:-1])


def peek(context_id: ContextId) -> ty.Any:
    stack = _STACKS[context_id].get()
    return stack[-1] if stack else ABSENT


def depth(context_id: ContextId) -> int:
    return len(_STACKS[context_id].get())


def _same_stack(a: Stack, b: Stack) -> bool:
    # nested push/pop pairs rebuild the tuple, so compare the elements, by identity.
    return a is b or (len(a) == len(b) and all(x is y for x, y in zip(a, b)))


@contextlib.contextmanager
def bound(context_id: ContextId, value: ty.Any) -> ty.Iterator[ty.Any]:
    """Push for the extent of the with block; the pop happens on every exit path.

    The stack must be exactly as the push left it when the block exits. Anything else
    (e.g. a generator holding a binding being closed inside some other binding) means
    the pairing is broken, and popping would remove somebody else's value.
    """
    var = _STACKS[context_id]
    push(context_id, value)
    pushed = var.get()
    try:
        yield value
    finally:
        if not _same_stack(var.get(), pushed):
            raise StackCorruption(
                f"Binding for context '{context_id}' was not the innermost one when its block exited"
            )
        pop(context_id)


def current_stacks() -> ty.Dict[ContextId, Stack]:
    """Every non-empty stack visible from the current thread/task."""
    stacks = ((cid, var.get()) for cid, var in list(_STACKS.items()))
    return {cid: stack for cid, stack in stacks if stack}


@contextlib.contextmanager
def restored(stacks: ty.Mapping[ContextId, Stack]) -> ty.Iterator[None]:
    """Install whole stacks (e.g. taken from another thread) for the extent of the with block.

    Contexts not named in `stacks` are emptied for the duration, so the result is
    exactly what was captured, not a blend of captured and local bindings.
    """
    tokens = [(var, var.set(stacks.get(cid, ()))) for cid, var in list(_STACKS.items())]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def install(stacks: ty.Mapping[ContextId, Stack]) -> None:
    """restored, without the restoring. For threads that should keep these bindings for life."""
    for cid, var in list(_STACKS.items()):
        var.set(stacks.get(cid, ()))


def name_of(context_id: ContextId) -> str:
    return context_id.rsplit("+", 1)[0]


def bound_names(*excluding: ContextId) -> ty.Tuple[str, ...]:
    """Names of the contexts with at least one binding visible from here, in creation order."""
    return tuple(name_of(cid) for cid in current_stacks() if cid not in excluding)
