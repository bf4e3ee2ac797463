"""
Seat view state and reducers

Everything here is pure: reducers take a ``ViewState`` and return a new one,
together with the side effects (pulse a seat, notify a conflict) the caller
should perform. Nothing in this module touches the network, timers or the
notifier.
"""

from bisect import bisect_left, insort
from dataclasses import dataclass, field, replace
from itertools import groupby
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union
import uuid

from pydantic import ValidationError as PydanticValidationError

from cinema_seats.core.exceptions import ValidationError
from cinema_seats.schemas.booking import SeatBookingItem
from cinema_seats.schemas.seat import ChangeType, SeatChangeEvent, SeatResponse


def _sort_key(seat: SeatResponse) -> Tuple[str, int, str]:
    # id breaks ties so every seat has a distinct position
    return (*seat.sort_key, str(seat.id))


class SeatSnapshot:
    """
    Seats keyed by id, always ordered by (row_label, seat_number).

    Instances are never mutated; ``upsert`` and ``remove`` return a new
    snapshot and are idempotent.
    """

    __slots__ = ("_by_id", "_ordered")

    def __init__(self, seats: Iterable[SeatResponse] = ()):
        by_id: Dict[uuid.UUID, SeatResponse] = {}
        for seat in seats:
            by_id[seat.id] = seat
        self._by_id = by_id
        self._ordered: List[SeatResponse] = sorted(by_id.values(), key=_sort_key)

    @classmethod
    def _from_parts(cls, by_id, ordered) -> "SeatSnapshot":
        snapshot = cls.__new__(cls)
        snapshot._by_id = by_id
        snapshot._ordered = ordered
        return snapshot

    def upsert(self, seat: SeatResponse) -> "SeatSnapshot":
        by_id = dict(self._by_id)
        ordered = list(self._ordered)

        previous = by_id.get(seat.id)
        if previous is not None:
            del ordered[bisect_left(ordered, _sort_key(previous), key=_sort_key)]

        by_id[seat.id] = seat
        insort(ordered, seat, key=_sort_key)
        return self._from_parts(by_id, ordered)

    def remove(self, seat_id: uuid.UUID) -> "SeatSnapshot":
        previous = self._by_id.get(seat_id)
        if previous is None:
            return self

        by_id = dict(self._by_id)
        ordered = list(self._ordered)
        del by_id[seat_id]
        del ordered[bisect_left(ordered, _sort_key(previous), key=_sort_key)]
        return self._from_parts(by_id, ordered)

    def get(self, seat_id: uuid.UUID) -> Optional[SeatResponse]:
        return self._by_id.get(seat_id)

    @property
    def seats(self) -> Tuple[SeatResponse, ...]:
        return tuple(self._ordered)

    def rows(self) -> List[Tuple[str, List[SeatResponse]]]:
        """Seats grouped by row label, rows and seats in display order"""
        return [
            (row_label, list(seats))
            for row_label, seats in groupby(self._ordered, key=lambda s: s.row_label)
        ]

    def __contains__(self, seat_id) -> bool:
        return seat_id in self._by_id

    def __iter__(self) -> Iterator[SeatResponse]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SeatSnapshot):
            return NotImplemented
        return self._ordered == other._ordered

    def __repr__(self):
        return f"<SeatSnapshot(seats={len(self)})>"


@dataclass(frozen=True)
class PulseSeat:
    """Highlight a seat another client just booked"""
    seat_id: uuid.UUID


@dataclass(frozen=True)
class NotifyConflict:
    """A seat selected here was booked by someone else"""
    seat: SeatResponse


Effect = Union[PulseSeat, NotifyConflict]


@dataclass(frozen=True)
class ViewState:
    snapshot: SeatSnapshot = field(default_factory=SeatSnapshot)
    selected: FrozenSet[uuid.UUID] = frozenset()
    names: Dict[uuid.UUID, str] = field(default_factory=dict)
    recently_booked: FrozenSet[uuid.UUID] = frozenset()
    # seats of the booking request currently in flight
    submitting: FrozenSet[uuid.UUID] = frozenset()

    @property
    def is_submitting(self) -> bool:
        return bool(self.submitting)

    def selected_seats(self) -> List[SeatResponse]:
        """Selected seats in display order"""
        return [seat for seat in self.snapshot if seat.id in self.selected]


def _deselect(state: ViewState, seat_id: uuid.UUID) -> ViewState:
    names = {k: v for k, v in state.names.items() if k != seat_id}
    return replace(state, selected=state.selected - {seat_id}, names=names)


def replace_snapshot(state: ViewState, seats: Iterable[SeatResponse]) -> ViewState:
    return replace(state, snapshot=SeatSnapshot(seats))


def apply_event(state: ViewState, event: SeatChangeEvent) -> Tuple[ViewState, List[Effect]]:
    """Fold one change feed event into the view state"""
    effects: List[Effect] = []

    if event.eventType == ChangeType.DELETE:
        seat_id = event.old.id
        state = replace(state, snapshot=state.snapshot.remove(seat_id))
        if seat_id in state.selected:
            state = _deselect(state, seat_id)
        return state, effects

    seat = event.new
    previous = state.snapshot.get(seat.id)
    state = replace(state, snapshot=state.snapshot.upsert(seat))

    if event.eventType != ChangeType.UPDATE or not seat.is_taken:
        return state, effects

    if seat.id in state.selected:
        # Our own in-flight booking echoes back through the feed
        if seat.id not in state.submitting:
            state = _deselect(state, seat.id)
            effects.append(NotifyConflict(seat))
    elif previous is None or not previous.is_taken:
        state = replace(state, recently_booked=state.recently_booked | {seat.id})
        effects.append(PulseSeat(seat.id))

    return state, effects


def clear_pulse(state: ViewState, seat_id: uuid.UUID) -> ViewState:
    if seat_id not in state.recently_booked:
        return state
    return replace(state, recently_booked=state.recently_booked - {seat_id})


def toggle_selection(state: ViewState, seat_id: uuid.UUID) -> ViewState:
    if seat_id in state.selected:
        return _deselect(state, seat_id)

    seat = state.snapshot.get(seat_id)
    if seat is None or seat.is_taken:
        return state
    return replace(state, selected=state.selected | {seat_id})


def set_name(state: ViewState, seat_id: uuid.UUID, name: str) -> ViewState:
    if seat_id not in state.selected:
        return state
    return replace(state, names={**state.names, seat_id: name})


def build_booking_request(state: ViewState) -> List[SeatBookingItem]:
    """
    Booking items for every selected seat.

    Raises ValidationError when nothing is selected, a selected seat has
    no name after trimming, or a name is rejected by the request schema
    (too long).
    """
    seats = state.selected_seats()
    if not seats:
        raise ValidationError("Select at least one seat", field="seats")

    missing = [seat.label for seat in seats if not state.names.get(seat.id, "").strip()]
    if missing:
        raise ValidationError(
            "Please fill in names for all selected seats",
            field="names",
            details={"seats": missing}
        )

    items = []
    rejected = {}
    for seat in seats:
        try:
            items.append(SeatBookingItem(
                row_label=seat.row_label,
                seat_number=seat.seat_number,
                name=state.names[seat.id].strip()
            ))
        except PydanticValidationError as e:
            rejected[seat.label] = [error["msg"] for error in e.errors()]

    if rejected:
        raise ValidationError(
            f"Invalid booking details for seats {', '.join(rejected)}",
            field="names",
            details={"seats": list(rejected), "errors": rejected}
        )
    return items


def begin_submission(state: ViewState) -> ViewState:
    return replace(state, submitting=frozenset(state.selected))


def finish_submission(state: ViewState, succeeded: bool) -> ViewState:
    if succeeded:
        return replace(state, selected=frozenset(), names={}, submitting=frozenset())
    return replace(state, submitting=frozenset())
