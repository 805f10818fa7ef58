"""Call-stack-scoped dynamic variables: provide a value once, consume it anywhere further down the stack."""
from importlib.metadata import PackageNotFoundError, version

from . import compose, config, context, log, snapshot, types  # noqa: F401
from ._registry import ContextAlreadyRegistered, StackCorruption  # noqa: F401
from .compose import compose_providers  # noqa: F401
from .context import (  # noqa: F401
    Context,
    LoadedProvider,
    NoProviderInScope,
    OptionalContext,
    create_context,
    create_optional_context,
)
from .snapshot import Snapshot, bind  # noqa: F401
from .types import Consumer, OptionalConsumer, Provider  # noqa: F401

try:
    __version__ = version("thds.scoped")
except PackageNotFoundError:
    __version__ = ""
