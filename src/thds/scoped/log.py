"""Keyword logging that knows about dynamic scope.

Every record made through a logger from `getLogger` carries two extra attributes:

- `scoped_context`: the keyword arguments of the logging call, laid over whatever
  `logger_context` blocks are active further up the stack.
- `scoped_bindings`: the names of every context that has a value bound at the point
  of the call - usually the first thing you want to know when a consume fails.

```
logger = getLogger(__name__)
USER = create_context("user")
with logger_context(request="abc"), USER.set("alice"):
    logger.info("rendering", page=3)
# record.scoped_context == {'request': 'abc', 'page': 3}
# record.scoped_bindings == ('user',)
```

This module never configures handlers. Put "%(scoped_context)s" and
"%(scoped_bindings)s" in your own format string to see them.
"""
import contextlib
import logging
import typing as ty

from . import _registry, config

LOGLEVEL = config.item("thds.scoped.log.level", logging.INFO, parse=logging.getLevelName)

REC_KEYVALS = "scoped_context"
REC_BINDINGS = "scoped_bindings"
_PASSTHROUGH = frozenset(("exc_info", "stack_info", "stacklevel", "extra"))
# keyword arguments that Logger.log itself understands

_KEYVALS = _registry.mint("thds.scoped.log")
_registry.register(_KEYVALS)


def current_keyvals() -> ty.Mapping[str, ty.Any]:
    keyvals = _registry.peek(_KEYVALS)
    return dict() if keyvals is _registry.ABSENT else keyvals


@contextlib.contextmanager
def logger_context(**keyvals: ty.Any) -> ty.Iterator[None]:
    """Attach key-value pairs to every record logged further down the stack."""
    with _registry.bound(_KEYVALS, {**current_keyvals(), **keyvals}):
        yield


class KwLogger(logging.LoggerAdapter):
    """`logger.debug("bound", context="user", depth=2)` - no `extra` dictionary needed."""

    def process(self, msg, kwargs):
        log_kwargs = {k: v for k, v in kwargs.items() if k in _PASSTHROUGH}
        keyvals = {**current_keyvals(), **{k: v for k, v in kwargs.items() if k not in _PASSTHROUGH}}
        log_kwargs["extra"] = {
            **(log_kwargs.get("extra") or dict()),
            REC_KEYVALS: keyvals,
            REC_BINDINGS: _registry.bound_names(_KEYVALS),
        }
        return msg, log_kwargs


def keyvals_from_record(record: logging.LogRecord) -> ty.Optional[ty.Dict[str, ty.Any]]:
    return getattr(record, REC_KEYVALS, None)


def bindings_from_record(record: logging.LogRecord) -> ty.Tuple[str, ...]:
    return getattr(record, REC_BINDINGS, ())


def getLogger(name: ty.Optional[str] = None) -> KwLogger:
    """Loggers without a level of their own get the package-wide `thds.scoped.log.level`."""
    logger = logging.getLogger(name)
    if logger.level == logging.NOTSET:
        logger.setLevel(LOGLEVEL())
    return KwLogger(logger, dict())
