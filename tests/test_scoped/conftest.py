import typing as ty

import pytest

from thds.scoped import context


@pytest.fixture
def traced() -> ty.Iterator[None]:
    with context.TRACE.set_local(True):
        yield
