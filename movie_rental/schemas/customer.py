from typing import Optional

from movie_rental.schemas.base import CamelModel


class CustomerPayload(CamelModel):
    id: int = 0
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class CustomerRead(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
