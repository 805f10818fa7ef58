import asyncio
from concurrent.futures import ThreadPoolExecutor

from thds.scoped import bind, create_context, create_optional_context, snapshot

USER = create_optional_context("snapshot user")
REQUEST = create_context("snapshot request")


def test_deferred_callbacks_need_a_snapshot():
    callbacks = list()

    def schedule():
        callbacks.append(REQUEST.is_provided)
        callbacks.append(bind(REQUEST.consume))

    REQUEST.provide("r-1", schedule)
    plain, rebound = callbacks  # called after provide has returned
    assert plain() is False
    assert rebound() == "r-1"
    assert not REQUEST.is_provided()


def test_bind_carries_bindings_into_a_worker_thread():
    with USER.set("alice"), REQUEST.set("r-1"):
        work = bind(lambda suffix: f"{USER.consume()}:{REQUEST.consume()}{suffix}")

    with ThreadPoolExecutor(max_workers=1) as executor:
        assert executor.submit(work, "!").result() == "alice:r-1!"
        # the worker thread does not keep the bindings afterward
        assert executor.submit(USER.is_provided).result() is False


def test_snapshot_captures_the_whole_stack():
    with USER.set("outer"), USER.set("inner"):
        captured = snapshot.snapshot()

    def observe():
        shadowed = USER.provide("innermost", USER.consume)
        return shadowed, USER.consume(), USER.depth()

    assert captured.run(observe) == ("innermost", "inner", 2)
    assert USER.depth() == 0


def test_snapshot_run_replaces_local_bindings_then_restores_them():
    captured = snapshot.snapshot()  # nothing bound
    with USER.set("local"):
        assert captured.run(USER.consume) is None
        assert USER.consume() == "local"


def test_snapshot_is_restored_even_on_error():
    with USER.set("captured"):
        captured = snapshot.snapshot()

    def explode():
        raise KeyError("x")

    with USER.set("local"):
        try:
            captured.run(explode)
        except KeyError:
            pass
        assert USER.consume() == "local"


def test_rebinding_inside_an_event_loop_callback():
    async def main():
        loop = asyncio.get_running_loop()
        fut = loop.create_future()
        callback = REQUEST.provide("r-2", lambda: bind(lambda: fut.set_result(REQUEST.consume())))
        loop.call_soon(callback)  # scheduled after provide returned
        return await fut

    assert asyncio.run(main()) == "r-2"


def test_concurrent_tasks_do_not_see_each_others_bindings():
    async def worker(value: str) -> str:
        with USER.set(value):
            await asyncio.sleep(0)  # let the other task bind in between
            return USER.consume()

    async def main():
        results = await asyncio.gather(worker("a"), worker("b"))
        return results, USER.is_provided()

    assert asyncio.run(main()) == (["a", "b"], False)


def test_contextful_threadpool_executor():
    with snapshot.contextful_threadpool_executor() as executor:
        assert executor.submit(USER.consume).result() is None

    with USER.set("prod"):
        with snapshot.contextful_threadpool_executor() as executor:
            assert executor.submit(USER.consume).result() == "prod"
