from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from movie_rental.core.database import Base
from movie_rental.models.customer import Customer
from movie_rental.models.movie import Movie
from movie_rental.models.rental import PaymentMethod, Rental
from movie_rental.payments.resolver import PaymentProviderResolver
from movie_rental.services.rentals import RentalService


def _build_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    db.add(Customer(id=1, name="John Doe"))
    db.add(Customer(id=2, name="Mary 100% Smith"))
    db.add(Customer(id=3, name="JOÃO SILVA"))
    db.add(Movie(id=10, title="The Matrix"))
    db.add(Movie(id=11, title="Alien"))
    db.commit()
    return db


def _book(service, db, *, customer_id=1, movie_id=10, method=PaymentMethod.MBWAY):
    rental = Rental(
        days_rented=2,
        payment_method=method,
        payment_value=Decimal("4.00"),
        customer_id=customer_id,
        movie_id=movie_id,
    )
    return service.save_rental(db, rental)


@pytest.mark.parametrize("term", ["", None, "   "])
def test_blank_search_returns_empty_list_not_the_whole_table(term):
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    _book(service, db)

    assert service.get_rentals_by_customer_name(db, term) == []


@pytest.mark.parametrize("term", ["john", "DOE", "hn Do", "John Doe"])
def test_search_is_case_insensitive_substring(term):
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    booked = _book(service, db)
    _book(service, db, customer_id=2)

    results = service.get_rentals_by_customer_name(db, term)

    assert [rental.id for rental in results] == [booked.id]


def test_search_hydrates_customer_and_movie():
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    _book(service, db, movie_id=11)
    db.expunge_all()

    results = service.get_rentals_by_customer_name(db, "john")

    assert len(results) == 1
    assert results[0].customer.name == "John Doe"
    assert results[0].movie.title == "Alien"


def test_search_returns_newest_rental_first():
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    first = _book(service, db, movie_id=10)
    second = _book(service, db, movie_id=11, method=PaymentMethod.PAYPAL)
    third = _book(service, db, movie_id=10)

    results = service.get_rentals_by_customer_name(db, "Doe")

    assert [rental.id for rental in results] == [third.id, second.id, first.id]


def test_search_treats_like_wildcards_literally():
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    _book(service, db, customer_id=1)
    smith = _book(service, db, customer_id=2)

    assert [rental.id for rental in service.get_rentals_by_customer_name(db, "100%")] == [smith.id]
    assert service.get_rentals_by_customer_name(db, "%") == [smith]
    assert service.get_rentals_by_customer_name(db, "_") == []


def test_search_without_matches_is_empty():
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    _book(service, db)

    assert service.get_rentals_by_customer_name(db, "nobody") == []


@pytest.mark.parametrize("term", ["JOÃO", "joão", "João Silva", "ão s"])
def test_search_folds_case_of_non_ascii_names(term):
    db = _build_session()
    service = RentalService(PaymentProviderResolver())
    _book(service, db, customer_id=1)
    joao = _book(service, db, customer_id=3)

    results = service.get_rentals_by_customer_name(db, term)

    assert [rental.id for rental in results] == [joao.id]
