from sqlalchemy import Boolean, Column, Integer, String, Float, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from studysheet.clock import utcnow
from studysheet.database import Base

class Problem(Base):
    """Practice problem on a user's sheet, with its cached review schedule"""
    __tablename__ = "problems"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    # Sheet columns
    title = Column(String, nullable=False)
    question_number = Column(Integer)
    difficulty = Column(String)  # "Easy", "Medium", "Hard" as imported
    topic_category = Column(String)
    companies = Column(String)  # comma-separated
    link = Column(String)
    link_gfg = Column(String)
    frequency_score = Column(Float)
    comment = Column(Text)
    
    is_completed = Column(Boolean, nullable=False, default=False)
    completion_date = Column(Date)
    
    # Review schedule, a cache of replaying this problem's attempts
    srs_bucket = Column(Integer, nullable=False, default=0)
    next_review_at = Column(DateTime, index=True)  # NULL = never reviewed, due now
    difficulty_personal = Column(Integer)  # 1-10, display only
    last_attempt_id = Column(Integer)  # newest attempt folded into the cache
    attempts_folded = Column(Integer, nullable=False, default=0)  # attempts the cache has replayed
    srs_version = Column(Integer, nullable=False, default=0)  # bumped on every schedule write
    
    created_at = Column(DateTime, default=utcnow)
    
    user = relationship("User", back_populates="problems")
    attempts = relationship("Attempt", back_populates="problem")
