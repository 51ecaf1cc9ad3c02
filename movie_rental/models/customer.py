from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from movie_rental.core.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=True)
    # email.lower(), único quando preenchido
    email_normalized = Column(String(255), nullable=True, unique=True, index=True)
    phone = Column(String(30), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    rentals = relationship("Rental", back_populates="customer")
