import typing as ty

R = ty.TypeVar("R")
_T_co = ty.TypeVar("_T_co", covariant=True)


class Provider(ty.Protocol):
    """Anything that binds something for the extent of one call to a zero-argument
    sub-routine and returns what the sub-routine returned.
    """

    def __call__(self, sub_routine: ty.Callable[[], R]) -> R:
        ...


class Consumer(ty.Protocol[_T_co]):
    def __call__(self) -> _T_co:
        ...


class OptionalConsumer(ty.Protocol[_T_co]):
    def __call__(self) -> ty.Optional[_T_co]:
        ...
