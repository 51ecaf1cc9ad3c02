from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from movie_rental.core.database import get_db
from movie_rental.models.customer import Customer
from movie_rental.schemas.customer import CustomerPayload, CustomerRead
from movie_rental.services.customers import list_customers, save_customer

router = APIRouter(prefix="/customer", tags=["customers"])


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerPayload, db: Session = Depends(get_db)):
    customer = Customer(
        id=payload.id or None,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
    )
    return save_customer(db, customer)


@router.get("", response_model=List[CustomerRead])
def get_customers(
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    page_number: Optional[int] = Query(default=None, alias="pageNumber"),
    db: Session = Depends(get_db),
):
    return list_customers(db, page_size=page_size, page_number=page_number)
