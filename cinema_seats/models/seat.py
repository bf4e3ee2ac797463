"""
Seat model
"""

from sqlalchemy import Column, String, Integer, Boolean, UniqueConstraint, CheckConstraint

from cinema_seats.models.base import BaseModel


class Seat(BaseModel):
    """
    A bookable cinema seat. Rows are provisioned out of band; the booking
    service is the only writer of ``is_taken`` / ``booked_by``.
    """
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint('row_label', 'seat_number', name='uq_seat_row_number'),
        CheckConstraint('seat_number > 0', name='ck_seat_number_positive'),
    )

    row_label = Column(String(10), nullable=False, index=True)
    seat_number = Column(Integer, nullable=False)
    is_taken = Column(Boolean, default=False, nullable=False)
    booked_by = Column(String(255), nullable=True)

    @property
    def label(self) -> str:
        return f"{self.row_label}{self.seat_number}"

    def __repr__(self):
        return f"<Seat(id={self.id}, row={self.row_label}, seat={self.seat_number}, taken={self.is_taken})>"
