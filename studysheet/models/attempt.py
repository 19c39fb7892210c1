import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, event
from sqlalchemy.orm import relationship
from studysheet.clock import utcnow
from studysheet.database import Base
from studysheet.errors import ImmutableRecordError

class AttemptOutcome(str, enum.Enum):
    SOLVED = "Solved"
    FAILED = "Failed"
    HINT_USED = "Hint_Used"

class Attempt(Base):
    """One practice attempt. Append-only history."""
    __tablename__ = "attempts"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id"), nullable=False, index=True)
    
    timestamp = Column(DateTime, nullable=False, index=True)
    outcome = Column(String, nullable=False)  # AttemptOutcome value
    confidence_rating = Column(Integer, nullable=False)  # 1-5
    time_taken_seconds = Column(Integer)
    notes_markdown = Column(Text)
    code_snippet = Column(Text)
    
    created_at = Column(DateTime, default=utcnow)
    
    user = relationship("User", back_populates="attempts")
    problem = relationship("Problem", back_populates="attempts")


@event.listens_for(Attempt, "before_update")
def _reject_attempt_update(mapper, connection, target):
    raise ImmutableRecordError(f"Attempt {target.id} is history and cannot be edited")


@event.listens_for(Attempt, "before_delete")
def _reject_attempt_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Attempt {target.id} is history and cannot be deleted")
