from thds.scoped import OptionalContext, create_context, create_optional_context

MAYBE_NUMBER: OptionalContext[int] = create_optional_context("maybe number")
MAYBE_WORD: OptionalContext[str] = create_optional_context("maybe word")


def test_consume_without_provider_returns_none():
    assert MAYBE_NUMBER.consume() is None


def test_consume_without_a_matching_provider_returns_none():
    assert MAYBE_NUMBER.provide(1, MAYBE_WORD.consume) is None


def test_one_level_deep():
    assert MAYBE_NUMBER.provide(10, MAYBE_NUMBER.consume) == 10


def test_many_levels_deep():
    def b():
        return c()

    def c():
        return MAYBE_NUMBER.consume()

    assert MAYBE_NUMBER.provide(10, b) == 10


def test_different_providers_and_overriding():
    values = list()

    def d():
        values.append(MAYBE_NUMBER.consume())

    def body():
        d()
        MAYBE_NUMBER.provide(20, d)
        d()

    MAYBE_NUMBER.provide(10, body)
    MAYBE_NUMBER.provide(30, d)
    assert values == [10, 20, 10, 30]


def test_multiple_contexts():
    def read_both():
        return MAYBE_NUMBER.consume(), MAYBE_WORD.consume()

    assert MAYBE_NUMBER.provide(10, lambda: MAYBE_WORD.provide("HA", read_both)) == (10, "HA")
    assert MAYBE_WORD.provide("HA", read_both) == (None, "HA")


def test_default_is_returned_only_when_absent():
    port = create_optional_context("port", default=8080)
    assert port.consume() == 8080
    assert port.provide(0, port.consume) == 0
    assert port.provide(None, port.consume) is None


def test_provided_none_is_distinguishable_from_absent():
    assert not MAYBE_NUMBER.is_provided()
    assert MAYBE_NUMBER.provide(None, MAYBE_NUMBER.is_provided)


def test_optional_and_required_contexts_do_not_share_stacks():
    required = create_context("required twin")
    assert required.provide(1, MAYBE_NUMBER.consume) is None


def test_default_name_is_the_creating_module():
    assert OptionalContext().name == __name__
    assert create_optional_context().name == __name__
