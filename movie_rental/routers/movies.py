from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from movie_rental.core.database import get_db
from movie_rental.models.movie import Movie
from movie_rental.schemas.movie import MoviePayload, MovieRead
from movie_rental.services.movies import list_movies, save_movie

router = APIRouter(prefix="/movie", tags=["movies"])


@router.post("", response_model=MovieRead, status_code=status.HTTP_201_CREATED)
def create_movie(payload: MoviePayload, db: Session = Depends(get_db)):
    return save_movie(db, Movie(id=payload.id or None, title=payload.title))


@router.get("", response_model=List[MovieRead])
def get_movies(
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    page_number: Optional[int] = Query(default=None, alias="pageNumber"),
    db: Session = Depends(get_db),
):
    return list_movies(db, page_size=page_size, page_number=page_number)
