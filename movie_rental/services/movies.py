from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from movie_rental.core.errors import ErrorReason, OperationFailedError
from movie_rental.models.movie import Movie
from movie_rental.services.pagination import normalize_page

logger = logging.getLogger(__name__)


def get_movie_by_id(db: Session, movie_id: int) -> Movie | None:
    return db.query(Movie).filter(Movie.id == movie_id).first()


def save_movie(db: Session, movie: Movie | None) -> Movie:
    if movie is None:
        raise OperationFailedError("Movie is required", reason=ErrorReason.VALIDATION)

    title = (movie.title or "").strip()
    if not title:
        raise OperationFailedError("Movie title cannot be empty", reason=ErrorReason.VALIDATION)

    if not movie.id:
        target = Movie(title=title)
        db.add(target)
    else:
        target = get_movie_by_id(db, movie.id)
        if target is None:
            raise OperationFailedError(f"Movie with ID {movie.id} not found", reason=ErrorReason.NOT_FOUND)
        target.title = title

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("movie save failed id=%s", movie.id)
        raise OperationFailedError("Failed to save movie", reason=ErrorReason.STORAGE_FAILURE) from exc

    db.refresh(target)
    logger.info("movie saved id=%s", target.id)
    return target


def list_movies(db: Session, page_size: int | None = None, page_number: int | None = None) -> list[Movie]:
    window = normalize_page(page_size, page_number)
    try:
        return (
            db.query(Movie)
            .order_by(Movie.title.asc(), Movie.id.asc())
            .offset(window.offset)
            .limit(window.page_size)
            .all()
        )
    except SQLAlchemyError as exc:
        raise OperationFailedError("Failed to retrieve movies", reason=ErrorReason.STORAGE_FAILURE) from exc
