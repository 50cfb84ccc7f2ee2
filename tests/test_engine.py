# tests/test_engine.py
from decimal import Decimal

import pytest

from drone_service.engine import EventKind, ServiceLifecycleEngine
from drone_service.errors import EmptyQueueError, NotFoundError, TagSpaceExhaustedError, ValidationError
from drone_service.models import Priority

R, E = Priority.REGULAR, Priority.EXPRESS


def tags(records):
    return [r.service_tag for r in records]


def finish(engine, priority, record=None):
    assert not engine.process_next(priority, record).confirmed
    outcome = engine.process_next(priority, record)
    assert outcome.confirmed
    return outcome.record


# -------- create --------

@pytest.mark.parametrize("raw, regular, express", [
    ("50", "50.00", "57.50"),
    ("0", "0.00", "0.00"),
    ("19.99", "19.99", "22.99"),
    ("123.45", "123.45", "141.97"),
    (" 7.5 ", "7.50", "8.63"),
])
def test_create_prices_by_priority(add, raw, regular, express):
    assert add("Regular", raw).service_cost == Decimal(regular)
    assert add("Express", raw).service_cost == Decimal(express)


def test_create_assigns_tags_and_queues(engine, add):
    a = add("Regular")
    b = add("Express")
    c = add("regular")
    assert tags([a, b, c]) == [100, 110, 120]
    assert engine.snapshot(R) == [a, c]
    assert engine.snapshot(E) == [b]
    assert engine.next_tag() == 130


def test_create_trims_fields(add):
    r = add(client="  jane doe ", model=" Mavic 3 ", problem=" gimbal drift ")
    assert (r.client_name, r.drone_model, r.service_problem) == ("jane doe", "Mavic 3", "gimbal drift")


@pytest.mark.parametrize("fields, field, reason", [
    (("", "", "", "x"), "client_name", "Client Name required."),
    (("a", "  ", "", "x"), "drone_model", "Drone Model required."),
    (("a", "b", "\t", "x"), "service_problem", "Service Problem required."),
    (("a", "b", "c", "abc"), "service_cost", "Cost must be numeric."),
    (("a", "b", "c", ""), "service_cost", "Cost must be numeric."),
    (("a", "b", "c", "-0.01"), "service_cost", "Cost cannot be negative."),
    (("a", "b", "c", "1" + "0" * 27), "service_cost", "Cost is too large."),
    (("a", "b", "c", "1e30"), "service_cost", "Cost is too large."),
])
def test_create_validation_first_failure_wins(engine, fields, field, reason):
    with pytest.raises(ValidationError) as info:
        engine.create_record(*fields, "Regular")
    assert info.value.field == field
    assert info.value.reason == reason
    assert engine.snapshot(R) == []
    assert engine.next_tag() == 100


def test_create_rejects_unknown_priority(engine):
    with pytest.raises(ValidationError) as info:
        engine.create_record("a", "b", "c", "1", "Overnight")
    assert info.value.field == "service_priority"
    assert engine.snapshot(R) == [] and engine.snapshot(E) == []


def test_tags_wrap_and_skip_live_tags(engine, add):
    records = [add() for _ in range(81)]
    assert records[-1].service_tag == 900
    with pytest.raises(TagSpaceExhaustedError):
        add()

    tag_110 = records[1]
    finish(engine, R, tag_110)
    assert engine.remove_finished(tag_110, confirmed=True)
    # 900 is live, so allocation wraps to 100, which is still live; 110 is free
    assert add().service_tag == 110


def test_first_tag_after_wrap_is_100_when_free(engine, add):
    records = [add() for _ in range(81)]
    head = finish(engine, R)
    assert head is records[0]
    engine.remove_finished(head, confirmed=True)
    assert add().service_tag == 100


# -------- edit --------

def test_load_for_edit_shows_base_cost(engine, add):
    express = add("Express", "50.00")
    form = engine.load_for_edit(express)
    assert form.cost == Decimal("50.00")
    assert form.priority is E
    assert form.service_tag == express.service_tag
    assert form.client_name == "Jane Doe"
    assert engine.load_for_edit(add("Regular", "12.34")).cost == Decimal("12.34")


def test_repeated_edits_do_not_compound_surcharge(engine, add):
    express = add("Express", "19.99")
    stored = express.service_cost
    for _ in range(3):
        form = engine.load_for_edit(express)
        engine.edit_record(express, form.client_name, form.drone_model, form.service_problem,
                           str(form.cost), form.priority)
        assert express.service_cost == stored


def test_edit_priority_change_moves_to_tail(engine, add):
    first = add("Regular")
    express = add("Express", "50.00")
    other_express = add("Express")
    assert express.service_cost == Decimal("57.50")

    form = engine.load_for_edit(express)
    result = engine.edit_record(express, "jane", "DJI", "prop", form.cost, "Regular")

    assert result is express
    assert express.service_tag == 110
    assert express.service_priority is R
    assert express.service_cost == Decimal("50.00")
    assert engine.snapshot(E) == [other_express]
    assert engine.snapshot(R) == [first, express]


def test_edit_same_priority_keeps_position(engine, add):
    a, b, c = add(), add(), add()
    engine.edit_record(b, "new name", "new model", "new problem", "75", "Regular")
    assert engine.snapshot(R) == [a, b, c]
    assert (b.client_name, b.service_cost) == ("new name", Decimal("75.00"))


def test_edit_validation_failure_changes_nothing(engine, add):
    express = add("Express", "50.00")
    with pytest.raises(ValidationError):
        engine.edit_record(express, "new", "", "p", "10", "Regular")
    assert express.client_name == "jane doe"
    assert express.service_priority is E
    assert express.service_cost == Decimal("57.50")
    assert engine.snapshot(E) == [express]
    assert engine.snapshot(R) == []


def test_edit_finished_record_is_not_found(engine, add):
    r = add()
    finish(engine, R)
    with pytest.raises(NotFoundError):
        engine.edit_record(r, "a", "b", "c", "1", "Express")
    with pytest.raises(NotFoundError):
        engine.load_for_edit(r)
    assert engine.finished_snapshot() == [r]
    assert r.service_priority is R


# -------- process --------

def test_process_empty_queue(engine, add):
    add("Express")
    with pytest.raises(EmptyQueueError):
        engine.process_next(R)
    assert not engine.is_pending(R)
    assert len(engine.snapshot(E)) == 1
    assert engine.finished_snapshot() == []


def test_process_requires_two_calls(engine, add):
    a, b = add(), add()
    first = engine.process_next(R)
    assert not first.confirmed and first.record is a
    assert engine.is_pending(R)
    assert engine.snapshot(R) == [a, b]

    second = engine.process_next(R)
    assert second.confirmed and second.record is a
    assert not engine.is_pending(R)
    assert engine.snapshot(R) == [b]
    assert engine.finished_snapshot() == [a]


def test_pending_flags_are_per_queue(engine, add):
    a, x = add("Regular"), add("Express")
    engine.process_next(R)
    assert not engine.process_next(E).confirmed
    assert engine.is_pending(R) and engine.is_pending(E)
    assert engine.process_next(R).record is a
    assert engine.process_next(E).record is x
    assert engine.finished_snapshot() == [a, x]


def test_selection_change_disarms(engine, add):
    a, b = add(), add()
    engine.process_next(R, a)
    engine.select(R, a)
    assert engine.is_pending(R)
    engine.select(R, b)
    assert not engine.is_pending(R)
    assert not engine.process_next(R, a).confirmed
    engine.clear_pending(R)
    assert not engine.process_next(R, a).confirmed
    assert engine.snapshot(R) == [a, b]


def test_different_candidate_rearms(engine, add):
    a, b = add(), add()
    engine.process_next(R)
    engine.edit_record(a, "jane", "DJI", "prop", "50", "Express")
    outcome = engine.process_next(R)
    assert not outcome.confirmed and outcome.record is b
    assert engine.process_next(R).record is b
    assert engine.snapshot(E) == [a]


def test_moving_armed_record_out_of_queue_disarms(engine, add):
    a = add()
    engine.process_next(R)
    engine.edit_record(a, "jane", "DJI", "prop", "50", "Express")
    assert not engine.is_pending(R)
    engine.edit_record(a, "jane", "DJI", "prop", "50", "Regular")

    outcome = engine.process_next(R)
    assert not outcome.confirmed and outcome.record is a
    assert engine.snapshot(R) == [a]
    assert engine.finished_snapshot() == []
    assert engine.process_next(R).confirmed


def test_negative_zero_cost_is_stored_as_zero(add):
    record = add("Regular", "-0")
    assert str(record.service_cost) == "0.00"
    assert record.display().endswith("Cost: $0.00, Priority: Regular")
    assert str(add("Express", "-0.00").service_cost) == "0.00"


def test_process_selected_record(engine, add):
    a, b, c = add(), add(), add()
    assert finish(engine, R, b) is b
    assert engine.snapshot(R) == [a, c]
    with pytest.raises(NotFoundError):
        engine.process_next(R, b)
    with pytest.raises(NotFoundError):
        engine.process_next(E, a)


# -------- remove --------

def test_remove_finished_needs_confirmation(engine, add):
    r = add()
    finish(engine, R)
    assert engine.remove_finished(r, confirmed=False) is False
    assert engine.finished_snapshot() == [r]
    assert engine.remove_finished(r, confirmed=True) is True
    assert engine.finished_snapshot() == []
    with pytest.raises(NotFoundError):
        engine.remove_finished(r, confirmed=True)


def test_remove_queued_record_is_not_found(engine, add):
    r = add()
    with pytest.raises(NotFoundError):
        engine.remove_finished(r, confirmed=True)
    assert engine.snapshot(R) == [r]


# -------- end to end --------

def test_full_lifecycle(engine, add):
    regular = add("Regular", "50.00")
    assert (regular.service_tag, regular.service_cost) == (100, Decimal("50.00"))
    express = add("Express", "50.00")
    assert (express.service_tag, express.service_cost) == (110, Decimal("57.50"))

    form = engine.load_for_edit(express)
    engine.edit_record(express, form.client_name, form.drone_model, form.service_problem, form.cost, "Regular")
    assert engine.snapshot(E) == []
    assert engine.snapshot(R) == [regular, express]
    assert (express.service_tag, express.service_cost) == (110, Decimal("50.00"))

    assert not engine.process_next(R).confirmed
    done = engine.process_next(R)
    assert done.confirmed and done.record is regular
    assert engine.finished_snapshot() == [regular]

    assert not engine.remove_finished(regular, confirmed=False)
    assert engine.finished_snapshot() == [regular]
    assert engine.remove_finished(regular, confirmed=True)
    assert engine.finished_snapshot() == []
    assert engine.snapshot(R) == [express]


# -------- notification --------

def test_listeners_receive_committed_changes(engine, add):
    events = []
    engine.subscribe(events.append)
    r = add()
    engine.edit_record(r, "a", "b", "c", "1", "Express")
    engine.process_next(E)
    engine.process_next(E)
    engine.remove_finished(r, confirmed=False)
    engine.remove_finished(r, confirmed=True)
    assert [e.kind for e in events] == [
        EventKind.CREATED, EventKind.UPDATED, EventKind.PROCESSED, EventKind.REMOVED,
    ]
    assert all(e.record is r for e in events)

    engine.unsubscribe(events.append)
    add()
    assert len(events) == 4


def test_failing_listener_does_not_abort(engine, caplog):
    def broken(_event):
        raise RuntimeError("boom")

    seen = []
    engine.subscribe(broken)
    engine.subscribe(seen.append)
    record = engine.create_record("a", "b", "c", "1", "Regular")
    assert engine.snapshot(R) == [record]
    assert len(seen) == 1
    assert "Listener" in caplog.text


def test_engine_accepts_injected_collaborators():
    from drone_service.router import PriorityQueueRouter
    from drone_service.tags import TagAllocator

    engine = ServiceLifecycleEngine(PriorityQueueRouter(), TagAllocator(start=100, step=10, maximum=120))
    for _ in range(3):
        engine.create_record("a", "b", "c", "1", "Regular")
    with pytest.raises(TagSpaceExhaustedError):
        engine.create_record("a", "b", "c", "1", "Regular")
