import pytest

from dtulink.topic import InvalidTopicError, SubscribeParser, topic_matches_sub


@pytest.mark.parametrize(
    "sub, topic",
    [
        ("foo/bar", "foo/bar"),
        ("foo/+", "foo/bar"),
        ("foo/+/baz", "foo/bar/baz"),
        ("foo/#", "foo/bar/baz"),
        ("foo/#", "foo"),
        ("foo/+/#", "foo/bar"),
        ("#", "foo/bar"),
        ("+", "foo"),
        ("$SYS/#", "$SYS/broker"),
        ("dtu/+/cmd/power", "dtu/abcdef012345/cmd/power"),
    ],
)
def test_matches(sub, topic):
    assert topic_matches_sub(sub, topic) is True


@pytest.mark.parametrize(
    "sub, topic",
    [
        ("foo/bar", "foo"),
        ("foo", "foo/bar"),
        ("foo/+", "foo/bar/baz"),
        ("foo/bar", "foo/baz"),
        ("#", "$SYS/broker"),
        ("$SYS/#", "foo/bar"),
        ("dtu/+/cmd/power", "dtu/abcdef012345/cmd/restart"),
    ],
)
def test_does_not_match(sub, topic):
    assert topic_matches_sub(sub, topic) is False


@pytest.mark.parametrize(
    "sub, topic",
    [
        ("", "foo"),
        ("foo", ""),
        ("foo+", "foobar"),
        ("foo/#/bar", "foo/x/bar"),
        ("foo/bar", "foo/+"),
        ("foo/bar", "foo/#"),
        ("foo#", "foobar"),
    ],
)
def test_invalid_raises(sub, topic):
    with pytest.raises(InvalidTopicError):
        topic_matches_sub(sub, topic)


def test_invalid_topic_error_is_value_error():
    with pytest.raises(ValueError):
        topic_matches_sub("", "")


def test_handle_message_dispatches_to_matching_callbacks():
    parser = SubscribeParser()
    received = []
    parser.register_callback("a/+/c", 0, lambda p, t, d: received.append(("plus", t, d)))
    parser.register_callback("x/#", 1, lambda p, t, d: received.append(("hash", t, d)))
    parser.handle_message({"retain": False}, "a/b/c", b"1")
    assert received == [("plus", "a/b/c", b"1")]


def test_handle_message_passes_properties():
    parser = SubscribeParser()
    seen = []
    properties = {"retain": True}
    parser.register_callback("#", 0, lambda p, t, d: seen.append(p))
    parser.handle_message(properties, "any/topic", b"")
    assert seen == [properties]


def test_handle_message_skips_invalid_filters():
    parser = SubscribeParser()
    received = []
    parser.register_callback("bad+", 0, lambda p, t, d: received.append("bad"))
    parser.register_callback("good", 0, lambda p, t, d: received.append("good"))
    parser.handle_message(None, "good", b"")
    assert received == ["good"]


def test_unregister_removes_all_with_topic():
    parser = SubscribeParser()
    parser.register_callback("a", 0, lambda p, t, d: None)
    parser.register_callback("b", 1, lambda p, t, d: None)
    parser.register_callback("a", 2, lambda p, t, d: None)
    parser.unregister_callback("a")
    assert [s.topic for s in parser.subscriptions()] == ["b"]


def test_subscriptions_keep_order_and_qos():
    parser = SubscribeParser()
    parser.register_callback("one", 0, lambda p, t, d: None)
    parser.register_callback("two", 2, lambda p, t, d: None)
    assert [(s.topic, s.qos) for s in parser.subscriptions()] == [("one", 0), ("two", 2)]


def test_subscriptions_returns_copy():
    parser = SubscribeParser()
    parser.register_callback("one", 0, lambda p, t, d: None)
    parser.subscriptions().clear()
    assert len(parser.subscriptions()) == 1