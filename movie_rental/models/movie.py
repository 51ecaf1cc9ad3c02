from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from movie_rental.core.database import Base


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    rentals = relationship("Rental", back_populates="movie")
