import json
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from movie_rental import main
from movie_rental.client.api_client import ApiError, MovieRentalApiClient, build_http_client
from movie_rental.client.state import BUSY_MESSAGE, CustomersState, MoviesState, ReadThroughCache, RentalsState
from movie_rental.core.database import Base, get_db
from movie_rental.deps import get_rental_service
from movie_rental.models.rental import PaymentMethod
from movie_rental.payments.resolver import PaymentProviderResolver
from movie_rental.services.rentals import RentalService


def _api(handler):
    return MovieRentalApiClient(build_http_client("http://rental.test/", transport=httpx.MockTransport(handler)))


def test_list_customers_sends_camel_case_paging_and_drops_missing_values():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "name": "John Doe"}])

    api = _api(handler)

    assert api.list_customers(page_size=2, page_number=3) == [{"id": 1, "name": "John Doe"}]
    api.list_customers()

    assert seen[0].url.path == "/customer"
    assert dict(seen[0].url.params) == {"pageSize": "2", "pageNumber": "3"}
    assert dict(seen[1].url.params) == {}


def test_save_rental_posts_camel_case_payload():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 5})

    api = _api(handler)

    result = api.save_rental(
        days_rented=3,
        payment_method="paypal",
        payment_value=Decimal("7.50"),
        customer_id=1,
        movie_id=10,
    )

    assert result == {"id": 5}
    assert captured["method"] == "POST"
    assert captured["path"] == "/rental"
    assert captured["body"] == {
        "daysRented": 3,
        "paymentMethod": "paypal",
        "paymentValue": "7.50",
        "customerId": 1,
        "movieId": 10,
    }


def test_problem_response_becomes_api_error():
    def handler(request):
        return httpx.Response(
            402,
            json={"title": "Payment Required", "detail": "Payment failed", "reason": "payment_failed"},
            headers={"content-type": "application/problem+json"},
        )

    api = _api(handler)

    with pytest.raises(ApiError) as exc:
        api.search_rentals("john")

    assert exc.value.status_code == 402
    assert exc.value.detail == "Payment failed"
    assert exc.value.reason == "payment_failed"


def test_non_json_error_uses_body_text():
    api = _api(lambda request: httpx.Response(503, text="upstream unavailable"))

    with pytest.raises(ApiError) as exc:
        api.list_movies()

    assert exc.value.status_code == 503
    assert exc.value.detail == "upstream unavailable"
    assert exc.value.reason is None


def test_read_through_cache_loads_once_until_invalidated():
    calls = []

    def loader():
        calls.append(1)
        return [{"id": len(calls)}]

    cache = ReadThroughCache(loader)

    assert not cache.is_loaded
    assert cache.get() == [{"id": 1}]
    assert cache.get() == [{"id": 1}]
    cache.invalidate()
    assert cache.get() == [{"id": 2}]
    assert len(calls) == 2


def test_busy_state_refuses_a_second_operation():
    state = MoviesState(_api(lambda request: httpx.Response(200, json=[])))
    state.is_loading = True
    state.title = "Alien"

    assert state.save_movie() is False
    assert state.status_message == BUSY_MESSAGE
    assert state.title == "Alien"


def test_customer_save_requires_name_without_calling_the_api():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={})

    state = CustomersState(_api(handler))
    state.name = "  "

    assert state.save_customer() is False
    assert state.status_message == "Name field is required."
    assert calls == []


def test_save_invalidates_cached_listing():
    customers = [{"id": 1, "name": "Alice"}]

    def handler(request):
        if request.method == "POST":
            customers.append({"id": 2, "name": json.loads(request.content)["name"]})
            return httpx.Response(201, json=customers[-1])
        return httpx.Response(200, json=list(customers))

    state = CustomersState(_api(handler))
    assert [c["name"] for c in state.customers] == ["Alice"]

    state.name = "Bob"
    assert state.save_customer() is True

    assert state.status_message == "Customer added!"
    assert state.name == ""
    assert [c["name"] for c in state.customers] == ["Alice", "Bob"]


def test_server_error_detail_is_surfaced_in_status_message():
    def handler(request):
        return httpx.Response(409, json={"detail": "A customer with email 'a@b.c' already exists", "reason": "conflict"})

    state = CustomersState(_api(handler))
    state.name = "Alice"
    state.email = "a@b.c"

    assert state.save_customer() is False
    assert state.status_message == "Save failed: A customer with email 'a@b.c' already exists"
    assert state.is_loading is False
    assert state.name == "Alice"


def test_transport_error_is_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    state = MoviesState(_api(handler))

    assert state.refresh() is False
    assert state.status_message.startswith("Error:")
    assert state.is_loading is False


def test_rental_save_requires_selections():
    state = RentalsState(_api(lambda request: httpx.Response(200, json=[])))
    state.days_rented = 2

    assert state.save_rental() is False
    assert state.status_message == "Please select both customer and movie"


def test_rental_state_lists_payment_methods():
    state = RentalsState(_api(lambda request: httpx.Response(200, json=[])))

    assert state.payment_methods == [PaymentMethod.MBWAY, PaymentMethod.PAYPAL]


@pytest.fixture
def live_api(monkeypatch):
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def _override_get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    main.app.dependency_overrides[get_db] = _override_get_db
    service = RentalService(PaymentProviderResolver())
    main.app.dependency_overrides[get_rental_service] = lambda: service

    with TestClient(main.app) as test_client:
        yield MovieRentalApiClient(test_client)

    main.app.dependency_overrides.clear()
    service.close(wait=True)


def test_rental_workflow_against_the_api(live_api):
    customers = CustomersState(live_api)
    customers.name = "John Doe"
    assert customers.save_customer() is True

    movies = MoviesState(live_api)
    movies.title = "The Matrix"
    assert movies.save_movie() is True

    rentals = RentalsState(live_api)
    assert rentals.load() is True
    assert rentals.selected_customer["name"] == "John Doe"
    assert rentals.selected_movie["title"] == "The Matrix"

    rentals.days_rented = 3
    rentals.payment_value = Decimal("7.50")
    rentals.selected_payment_method = PaymentMethod.PAYPAL
    assert rentals.save_rental() is True
    assert rentals.status_message == "Rental added!"
    assert rentals.days_rented == 0

    rentals.customer_to_search = "john"
    assert rentals.search() is True
    assert len(rentals.rentals) == 1
    assert rentals.rentals[0]["movie"]["title"] == "The Matrix"
    assert rentals.rentals[0]["paymentMethod"] == "paypal"
    assert rentals.rentals[0]["paymentValue"] == "7.50"


def test_rejected_rental_keeps_the_form(live_api):
    customers = CustomersState(live_api)
    customers.name = "John Doe"
    customers.save_customer()
    movies = MoviesState(live_api)
    movies.title = "Alien"
    movies.save_movie()

    rentals = RentalsState(live_api)
    rentals.load()
    rentals.days_rented = 2
    rentals.payment_value = Decimal("0")

    assert rentals.save_rental() is False
    assert rentals.status_message == "Save failed: Payment value must be greater than zero"
    assert rentals.days_rented == 2
