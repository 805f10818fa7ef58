"""Type-safe, discoverable configuration for thds.scoped.

- Configuration is always accessible and configurable via normal Python code.
- All active configuration is 'registered' and therefore discoverable.
- Config can be temporarily overridden for the current thread/stack.
- Config can be set via a known environment variable.

Usage:

from thds.scoped import config

TRACE = config.item('thds.scoped.context.trace', False, parse=config.parse_bool)

TRACE.set_global(True)
with TRACE.set_local(False):
    assert not TRACE()
assert TRACE()

As an environment variable (read once, when the item is created):

export THDS_SCOPED_CONTEXT_TRACE=1

Loading several items at once, e.g. from a TOML file:

config.set_global_defaults(tomllib.load(open('scoped.toml', 'rb')))
"""
import typing as ty
from os import getenv

from . import _registry

_NOT_CONFIGURED = object()


class UnconfiguredError(ValueError):
    pass


class ConfigNameCollisionError(KeyError):
    pass


def _sanitize_env(env_var_name: str) -> str:
    return env_var_name.replace("-", "_").replace(".", "_")


def _getenv(env_var_name: str) -> ty.Optional[str]:
    """Supports a few naming conventions for env vars, so that nobody is
    required to name their config using all caps and underscores only.
    """
    return (
        getenv(env_var_name)
        or getenv(_sanitize_env(env_var_name))
        or getenv(_sanitize_env(env_var_name).upper())
    )


def parse_bool(value: ty.Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


T = ty.TypeVar("T")


class ConfigItem(ty.Generic[T]):
    """Should only ever be constructed at a module level."""

    def __init__(
        self,
        name: str,
        default: T = ty.cast(T, _NOT_CONFIGURED),
        *,
        parse: ty.Callable[[ty.Any], T] = lambda x: x,
        allow_env_var: bool = True,
    ):
        if name in _REGISTRY:
            raise ConfigNameCollisionError(f"Config item {name} has already been registered!")
        self.name = name
        self.parse = parse
        env_value = _getenv(name) if allow_env_var else None
        if env_value:
            # env var is only applicable at initial creation.  if you
            # want to set this value globally after application start,
            # use set_global.
            self.global_value = parse(env_value)
        else:
            self.global_value = default  # we trust your default.
        self._local_id = _registry.mint("config " + name)
        _registry.register(self._local_id)
        _REGISTRY[name] = self

    def set_global(self, value: T) -> None:
        """Global to the current process.

        Will not automatically get transferred to spawned processes.
        """
        self.global_value = self.parse(value)

    def set_local(self, value: T) -> ty.ContextManager[T]:
        """Local to the current thread, for the extent of the with block.

        Will not automatically get transferred to spawned threads.
        """
        return _registry.bound(self._local_id, self.parse(value))

    def __call__(self) -> T:
        local = _registry.peek(self._local_id)
        if local is not _registry.ABSENT:
            return local
        if self.global_value is _NOT_CONFIGURED:
            raise UnconfiguredError(f"Config item '{self.name}' has not been configured!")
        return self.global_value


def item(
    name: str,
    default: T = ty.cast(T, _NOT_CONFIGURED),
    *,
    parse: ty.Callable[[ty.Any], T] = lambda x: x,
    allow_env_var: bool = True,
) -> ConfigItem[T]:
    return ConfigItem(name, default, parse=parse, allow_env_var=allow_env_var)


class ConfigItemP(ty.Protocol[T]):
    def __call__(
        self,
        name: str,
        default: T = ty.cast(T, _NOT_CONFIGURED),
        parse: ty.Callable[[ty.Any], T] = lambda x: x,
        allow_env_var: bool = True,
    ) -> ConfigItem[T]:
        ...


def in_module(module_name: str) -> ConfigItemP:
    """`in_module(__name__)(...)` should usually be the way you name
    your configuration items. It avoids configuration name collisions.
    """

    def _module(name: str, *args, **kwargs) -> ConfigItem:
        return ConfigItem(f"{module_name}.{name}", *args, **kwargs)

    return ty.cast(ConfigItemP, _module)


_REGISTRY: ty.Dict[str, ConfigItem] = dict()


def config_by_name(name: str) -> ConfigItem:
    """This is a dynamic interface - in general, prefer accessing the ConfigItem object directly."""
    return _REGISTRY[name]


def set_global_defaults(config: ty.Dict[str, ty.Any]) -> None:
    """Any config-file parser can create a dictionary of only the
    items it managed to read, and then all of those can be set at once
    via this function. Nested dictionaries are flattened into dotted names.
    """
    for name, value in config.items():
        if isinstance(value, dict):
            set_global_defaults({f"{name}.{key}": val for key, val in value.items()})
            continue
        try:
            _REGISTRY[name].set_global(value)
        except KeyError as kerr:
            raise KeyError(
                f"Config item {name} is not registered. Please double-check your configuration."
            ) from kerr


def show_all_config() -> ty.Dict[str, ty.Any]:
    return {k: v() for k, v in _REGISTRY.items() if v.global_value is not _NOT_CONFIGURED}
