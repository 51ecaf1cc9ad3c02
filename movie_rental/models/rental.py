import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, func
from sqlalchemy.orm import relationship

from movie_rental.core.database import Base


class PaymentMethod(str, enum.Enum):
    MBWAY = "mbway"
    PAYPAL = "paypal"


class Rental(Base):
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True)
    days_rented = Column(Integer, nullable=False)

    movie_id = Column(Integer, ForeignKey("movies.id"), index=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), index=True, nullable=False)

    # Persistido pelo valor ("mbway"/"paypal"), igual ao contrato da API
    payment_method = Column(
        Enum(
            PaymentMethod,
            name="payment_method",
            native_enum=False,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    payment_value = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Navegação somente leitura: nunca obrigatória na escrita
    movie = relationship("Movie", back_populates="rentals")
    customer = relationship("Customer", back_populates="rentals")
