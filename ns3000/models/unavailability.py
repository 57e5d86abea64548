import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Text, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class UnavailabilityWindow(Base):
    """
    Staff-declared block making a boat unbookable on every date in
    [date_from, date_to] (both inclusive), whatever the slot.
    Edits are delete + recreate.
    """
    __tablename__ = "unavailabilities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    boat_id = Column(String(36), ForeignKey("boats.id", ondelete="CASCADE"), nullable=False)
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)  # maintenance, cleaning, reserved...
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    boat = relationship("Boat", back_populates="unavailabilities")

    __table_args__ = (
        CheckConstraint("date_to >= date_from", name="ck_unavailabilities_range"),
        Index("ix_unavailabilities_boat_range", "boat_id", "date_from", "date_to"),
    )

    def covers(self, target_date) -> bool:
        return self.date_from <= target_date <= self.date_to

    def __repr__(self):
        return f"<UnavailabilityWindow boat={self.boat_id} {self.date_from}..{self.date_to}>"
