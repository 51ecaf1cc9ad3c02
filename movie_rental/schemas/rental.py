from decimal import Decimal
from typing import Optional

from pydantic import field_serializer

from movie_rental.models.rental import PaymentMethod
from movie_rental.schemas.base import CamelModel
from movie_rental.schemas.customer import CustomerRead
from movie_rental.schemas.movie import MovieRead


class RentalPayload(CamelModel):
    # Sem restrições aqui: as regras de negócio ficam no RentalService
    days_rented: int
    payment_method: str
    payment_value: Decimal
    customer_id: int
    movie_id: int


class RentalRead(CamelModel):
    id: int
    days_rented: int
    payment_method: PaymentMethod
    payment_value: Decimal
    customer_id: int
    movie_id: int

    # Dinheiro trafega como string decimal ("7.50"), nunca como float
    @field_serializer("payment_value", when_used="json")
    def _serialize_payment_value(self, value: Decimal) -> str:
        return str(value.quantize(Decimal("0.01")))


class RentalDetail(RentalRead):
    customer: Optional[CustomerRead] = None
    movie: Optional[MovieRead] = None
