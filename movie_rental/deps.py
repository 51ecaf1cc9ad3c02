# movie_rental/deps.py
from __future__ import annotations

from movie_rental.payments.resolver import PaymentProviderResolver
from movie_rental.services.rentals import RentalService

# Único dono do pool de pagamentos; encerrado no shutdown da aplicação
_rental_service = RentalService(PaymentProviderResolver())


def get_rental_service() -> RentalService:
    return _rental_service


def close_rental_service() -> None:
    _rental_service.close()
