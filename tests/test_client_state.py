"""
Tests for the seat view reducers
"""

import random
import uuid

import pytest

from cinema_seats.client import state as view
from cinema_seats.client.state import NotifyConflict, PulseSeat, SeatSnapshot, ViewState
from cinema_seats.core.exceptions import ValidationError
from cinema_seats.schemas.seat import SeatChangeEvent, SeatResponse


def make_seat(row_label="A", seat_number=1, is_taken=False, booked_by=None, seat_id=None) -> SeatResponse:
    return SeatResponse(
        id=seat_id or uuid.uuid4(),
        row_label=row_label,
        seat_number=seat_number,
        is_taken=is_taken,
        booked_by=booked_by
    )


def taken(seat: SeatResponse, name="Someone") -> SeatResponse:
    return seat.model_copy(update={"is_taken": True, "booked_by": name})


def labels(snapshot: SeatSnapshot):
    return [seat.label for seat in snapshot]


@pytest.fixture
def seats():
    """A1..A3, B1..B2 keyed by label"""
    return {
        f"{row}{n}": make_seat(row, n)
        for row, count in (("A", 3), ("B", 2))
        for n in range(1, count + 1)
    }


@pytest.fixture
def state(seats):
    return view.replace_snapshot(ViewState(), seats.values())


class TestSeatSnapshot:

    def test_orders_by_row_then_number(self):
        snapshot = SeatSnapshot([
            make_seat("B", 1),
            make_seat("A", 10),
            make_seat("A", 2),
            make_seat("A", 1),
        ])
        assert labels(snapshot) == ["A1", "A2", "A10", "B1"]

    def test_sorted_after_any_merge(self):
        rng = random.Random(7)
        pool = [make_seat(row, n) for row in "ABCD" for n in range(1, 12)]
        snapshot = SeatSnapshot()

        for _ in range(300):
            seat = rng.choice(pool)
            if rng.random() < 0.25:
                snapshot = snapshot.remove(seat.id)
            else:
                snapshot = snapshot.upsert(taken(seat) if rng.random() < 0.5 else seat)

            keys = [s.sort_key for s in snapshot]
            assert keys == sorted(keys)
            assert len({s.id for s in snapshot}) == len(snapshot)

    def test_upsert_replaces_existing(self, seats):
        snapshot = SeatSnapshot(seats.values())
        updated = snapshot.upsert(taken(seats["A2"], "Jana"))

        assert len(updated) == len(snapshot)
        assert updated.get(seats["A2"].id).booked_by == "Jana"
        assert snapshot.get(seats["A2"].id).booked_by is None

    def test_upsert_is_idempotent(self, seats):
        snapshot = SeatSnapshot(seats.values())
        seat = taken(seats["B1"])

        once = snapshot.upsert(seat)
        twice = once.upsert(seat)

        assert once == twice
        assert labels(twice) == labels(snapshot)

    def test_remove_absent_returns_same_snapshot(self, seats):
        snapshot = SeatSnapshot(seats.values())
        assert snapshot.remove(uuid.uuid4()) is snapshot

    def test_rows(self, seats):
        rows = SeatSnapshot(seats.values()).rows()
        assert [row for row, _ in rows] == ["A", "B"]
        assert [s.seat_number for s in rows[0][1]] == [1, 2, 3]

    def test_membership(self, seats):
        snapshot = SeatSnapshot(seats.values())
        assert seats["A1"].id in snapshot
        assert uuid.uuid4() not in snapshot


class TestApplyEvent:

    def test_duplicate_update_is_idempotent(self, state, seats):
        event = SeatChangeEvent.updated(taken(seats["A1"], "Jana"))

        once, _ = view.apply_event(state, event)
        twice, effects = view.apply_event(once, event)

        assert twice.snapshot == once.snapshot
        assert effects == []

    def test_insert_adds_seat_in_order(self, state):
        seat = make_seat("A", 4)
        new_state, effects = view.apply_event(state, SeatChangeEvent.inserted(seat))

        assert labels(new_state.snapshot) == ["A1", "A2", "A3", "A4", "B1", "B2"]
        assert effects == []

    def test_update_of_unknown_seat_inserts_it(self, state):
        seat = make_seat("C", 1)
        new_state, _ = view.apply_event(state, SeatChangeEvent.updated(seat))
        assert seat.id in new_state.snapshot

    def test_delete_of_absent_seat_is_noop(self, state):
        new_state, effects = view.apply_event(state, SeatChangeEvent.deleted(uuid.uuid4()))

        assert new_state.snapshot == state.snapshot
        assert effects == []

    def test_delete_removes_and_deselects(self, state, seats):
        seat_id = seats["A2"].id
        state = view.toggle_selection(state, seat_id)
        state = view.set_name(state, seat_id, "Jana")

        new_state, _ = view.apply_event(state, SeatChangeEvent.deleted(seat_id))

        assert seat_id not in new_state.snapshot
        assert seat_id not in new_state.selected
        assert seat_id not in new_state.names

    def test_foreign_booking_pulses(self, state, seats):
        seat = taken(seats["B2"])
        new_state, effects = view.apply_event(state, SeatChangeEvent.updated(seat))

        assert effects == [PulseSeat(seat.id)]
        assert seat.id in new_state.recently_booked

    def test_pulse_only_on_transition_to_taken(self, state, seats):
        seat = taken(seats["B2"])
        state, _ = view.apply_event(state, SeatChangeEvent.updated(seat))
        state = view.clear_pulse(state, seat.id)

        # Renamed but still taken
        renamed = taken(seats["B2"], "Other")
        state, effects = view.apply_event(state, SeatChangeEvent.updated(renamed))

        assert effects == []
        assert seat.id not in state.recently_booked

    def test_freed_seat_does_not_pulse(self, state, seats):
        state, _ = view.apply_event(state, SeatChangeEvent.updated(taken(seats["A3"])))
        state = view.clear_pulse(state, seats["A3"].id)

        state, effects = view.apply_event(state, SeatChangeEvent.updated(seats["A3"]))

        assert effects == []
        assert state.snapshot.get(seats["A3"].id).is_taken is False

    def test_conflict_deselects_and_drops_draft(self, state, seats):
        seat_id = seats["A1"].id
        state = view.toggle_selection(state, seat_id)
        state = view.set_name(state, seat_id, "Jana")

        booked = taken(seats["A1"], "Peter")
        new_state, effects = view.apply_event(state, SeatChangeEvent.updated(booked))

        assert seat_id not in new_state.selected
        assert seat_id not in new_state.names
        assert effects == [NotifyConflict(booked)]
        assert new_state.snapshot.get(seat_id).booked_by == "Peter"

    def test_conflict_keeps_other_selections(self, state, seats):
        state = view.toggle_selection(state, seats["A1"].id)
        state = view.toggle_selection(state, seats["A2"].id)

        new_state, _ = view.apply_event(state, SeatChangeEvent.updated(taken(seats["A1"])))

        assert new_state.selected == frozenset({seats["A2"].id})

    def test_own_submission_echo_is_not_a_conflict(self, state, seats):
        seat_id = seats["A1"].id
        state = view.toggle_selection(state, seat_id)
        state = view.set_name(state, seat_id, "Jana")
        state = view.begin_submission(state)

        new_state, effects = view.apply_event(state, SeatChangeEvent.updated(taken(seats["A1"], "Jana")))

        assert effects == []
        assert seat_id in new_state.selected

    def test_inputs_are_not_mutated(self, state, seats):
        before = labels(state.snapshot)
        view.apply_event(state, SeatChangeEvent.deleted(seats["A1"].id))
        view.apply_event(state, SeatChangeEvent.updated(taken(seats["B1"])))

        assert labels(state.snapshot) == before
        assert state.snapshot.get(seats["B1"].id).is_taken is False


class TestSelection:

    def test_toggle_on_and_off(self, state, seats):
        seat_id = seats["A1"].id
        state = view.toggle_selection(state, seat_id)
        assert seat_id in state.selected

        state = view.set_name(state, seat_id, "Jana")
        state = view.toggle_selection(state, seat_id)
        assert seat_id not in state.selected
        assert seat_id not in state.names

    def test_taken_seat_cannot_be_selected(self, state, seats):
        state, _ = view.apply_event(state, SeatChangeEvent.updated(taken(seats["A1"])))
        assert view.toggle_selection(state, seats["A1"].id) is state

    def test_unknown_seat_cannot_be_selected(self, state):
        assert view.toggle_selection(state, uuid.uuid4()) is state

    def test_name_for_unselected_seat_ignored(self, state, seats):
        assert view.set_name(state, seats["A1"].id, "Jana") is state

    def test_selected_seats_in_display_order(self, state, seats):
        for label in ("B1", "A3", "A1"):
            state = view.toggle_selection(state, seats[label].id)
        assert [s.label for s in state.selected_seats()] == ["A1", "A3", "B1"]


class TestBuildBookingRequest:

    def test_empty_selection(self, state):
        with pytest.raises(ValidationError) as exc_info:
            view.build_booking_request(state)
        assert exc_info.value.message == "Select at least one seat"

    @pytest.mark.parametrize("name", ["", "   ", "\t"])
    def test_blank_name_rejected(self, state, seats, name):
        state = view.toggle_selection(state, seats["A1"].id)
        state = view.toggle_selection(state, seats["A2"].id)
        state = view.set_name(state, seats["A1"].id, "Jana")
        state = view.set_name(state, seats["A2"].id, name)

        with pytest.raises(ValidationError) as exc_info:
            view.build_booking_request(state)

        assert exc_info.value.message == "Please fill in names for all selected seats"
        assert exc_info.value.details["seats"] == ["A2"]

    def test_overlong_name_rejected(self, state, seats):
        state = view.toggle_selection(state, seats["B2"].id)
        state = view.set_name(state, seats["B2"].id, "x" * 256)

        with pytest.raises(ValidationError) as exc_info:
            view.build_booking_request(state)

        assert exc_info.value.details["seats"] == ["B2"]
        assert exc_info.value.details["field"] == "names"

    def test_name_at_length_limit_accepted(self, state, seats):
        state = view.toggle_selection(state, seats["B2"].id)
        state = view.set_name(state, seats["B2"].id, "x" * 255)

        assert [item.name for item in view.build_booking_request(state)] == ["x" * 255]

    def test_items_trimmed_and_ordered(self, state, seats):
        state = view.toggle_selection(state, seats["A2"].id)
        state = view.toggle_selection(state, seats["A1"].id)
        state = view.set_name(state, seats["A1"].id, " Jana ")
        state = view.set_name(state, seats["A2"].id, "Peter")

        items = view.build_booking_request(state)

        assert [(i.row_label, i.seat_number, i.name) for i in items] == [
            ("A", 1, "Jana"),
            ("A", 2, "Peter"),
        ]
        assert items[0].model_dump(by_alias=True) == {"seat_row": "A", "seat_number": 1, "name": "Jana"}


class TestSubmission:

    def test_success_clears_selection_and_names(self, state, seats):
        state = view.toggle_selection(state, seats["A1"].id)
        state = view.set_name(state, seats["A1"].id, "Jana")
        state = view.begin_submission(state)
        assert state.is_submitting

        state = view.finish_submission(state, succeeded=True)

        assert state.selected == frozenset()
        assert state.names == {}
        assert not state.is_submitting

    def test_failure_keeps_selection_and_names(self, state, seats):
        state = view.toggle_selection(state, seats["A1"].id)
        state = view.set_name(state, seats["A1"].id, "Jana")
        state = view.begin_submission(state)

        state = view.finish_submission(state, succeeded=False)

        assert state.selected == frozenset({seats["A1"].id})
        assert state.names == {seats["A1"].id: "Jana"}
        assert not state.is_submitting
