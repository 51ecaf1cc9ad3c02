from movie_rental.schemas.base import CamelModel


class MoviePayload(CamelModel):
    id: int = 0
    title: str


class MovieRead(CamelModel):
    id: int
    title: str
