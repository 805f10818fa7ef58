import typing as ty
from functools import partial, reduce

from .types import Provider

R = ty.TypeVar("R")


def _nest(inner: ty.Callable[[], R], provider: Provider) -> ty.Callable[[], R]:
    return partial(provider, inner)


def compose_providers(*loaded_providers: Provider) -> Provider:
    """outermost-first.

    compose_providers(a, b, c)(f) is a(lambda: b(lambda: c(f))), so when two of the
    providers target the same context, the later one is what f consumes.
    """

    def composite_provider(sub_routine: ty.Callable[[], R]) -> R:
        return reduce(_nest, reversed(loaded_providers), sub_routine)()

    return composite_provider
