from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from studysheet.clock import utcnow
from studysheet.database import Base

class User(Base):
    """Owner of a problem sheet"""
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    
    problems = relationship("Problem", back_populates="user")
    attempts = relationship("Attempt", back_populates="user")
