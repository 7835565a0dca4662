"""Tests for EventHub."""
import pytest

from docstate import EventHub, HookResult, model_event_name


class Post:
    pass


class Comment:
    pass


@pytest.fixture
def hub():
    return EventHub()


def test_event_names_are_type_qualified():
    assert model_event_name("saving", Post) == f"model.saving.{__name__}.Post"
    assert model_event_name("saving", Post) != model_event_name("saving", Comment)


def test_listeners_run_in_registration_order(hub):
    calls = []
    hub.listen("e", lambda x: calls.append(("first", x)))
    hub.listen("e", lambda x: calls.append(("second", x)))

    assert hub.fire("e", (1,)) is True
    assert calls == [("first", 1), ("second", 1)]


def test_false_halts_propagation(hub):
    calls = []
    hub.listen("e", lambda: calls.append(1))
    hub.listen("e", lambda: False)
    hub.listen("e", lambda: calls.append(3))

    assert hub.fire("e") is False
    assert calls == [1]


def test_abort_result_halts(hub):
    hub.listen("e", lambda: HookResult.ABORT)
    assert hub.fire("e") is False


def test_falsy_values_other_than_false_do_not_halt(hub):
    calls = []
    hub.listen("e", lambda: None)
    hub.listen("e", lambda: 0)
    hub.listen("e", lambda: HookResult.CONTINUE)
    hub.listen("e", lambda: calls.append("ran"))

    assert hub.fire("e") is True
    assert calls == ["ran"]


def test_non_halting_runs_everything(hub):
    calls = []
    hub.listen("e", lambda: False)
    hub.listen("e", lambda: calls.append("ran") or "done")

    responses = hub.fire("e", halt=False)

    assert calls == ["ran"]
    assert responses == [False, "done"]


def test_listener_exception_propagates_and_stops(hub):
    calls = []

    def boom():
        raise RuntimeError("boom")

    hub.listen("e", boom)
    hub.listen("e", lambda: calls.append("never"))

    with pytest.raises(RuntimeError, match="boom"):
        hub.fire("e")
    assert calls == []


def test_fire_without_listeners(hub):
    assert hub.fire("nothing") is True
    assert hub.fire("nothing", halt=False) == []


def test_forget(hub):
    def first():
        return False

    def second():
        return None

    hub.listen("e", first)
    hub.listen("e", second)
    hub.forget("e", first)
    assert hub.listeners("e") == [second]

    hub.forget("e")
    assert not hub.has_listeners("e")


def test_listen_rejects_non_callable(hub):
    with pytest.raises(TypeError):
        hub.listen("e", "not callable")


def test_model_events_default_halt_by_phase(hub):
    from docstate import fire_model_event

    hub.listen(model_event_name("saving", Post), lambda post: False)
    hub.listen(model_event_name("saved", Post), lambda post: False)

    assert fire_model_event(hub, Post(), "saving") is False
    assert fire_model_event(hub, Post(), "saved") == [False]
