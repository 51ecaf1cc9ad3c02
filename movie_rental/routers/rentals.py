from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from movie_rental.core.database import get_db
from movie_rental.deps import get_rental_service
from movie_rental.models.rental import Rental
from movie_rental.schemas.rental import RentalDetail, RentalPayload, RentalRead
from movie_rental.services.rentals import RentalService

router = APIRouter(prefix="/rental", tags=["rentals"])


@router.post("", response_model=RentalRead, status_code=status.HTTP_201_CREATED)
def create_rental(
    payload: RentalPayload,
    db: Session = Depends(get_db),
    service: RentalService = Depends(get_rental_service),
):
    rental = Rental(
        days_rented=payload.days_rented,
        payment_method=payload.payment_method,
        payment_value=payload.payment_value,
        customer_id=payload.customer_id,
        movie_id=payload.movie_id,
    )
    return service.save_rental(db, rental)


@router.get("", response_model=List[RentalDetail])
def search_rentals(
    customer_name: Optional[str] = Query(default=None, alias="customerName"),
    db: Session = Depends(get_db),
    service: RentalService = Depends(get_rental_service),
):
    return service.get_rentals_by_customer_name(db, customer_name)
