from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Optional

import httpx

from movie_rental.client.api_client import ApiError, MovieRentalApiClient
from movie_rental.models.rental import PaymentMethod

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "Please wait, an operation is already in progress."


class ReadThroughCache:
    """Lista carregada sob demanda e descartada a cada escrita."""

    def __init__(self, loader: Callable[[], list[dict[str, Any]]]) -> None:
        self._loader = loader
        self._items: Optional[list[dict[str, Any]]] = None

    @property
    def is_loaded(self) -> bool:
        return self._items is not None

    def get(self) -> list[dict[str, Any]]:
        if self._items is None:
            self._items = list(self._loader() or [])
        return self._items

    def invalidate(self) -> None:
        self._items = None


class _ClientState:
    def __init__(self, api: MovieRentalApiClient) -> None:
        self._api = api
        self.is_loading = False
        self.status_message = ""

    def _caches(self) -> list[ReadThroughCache]:
        return []

    def _invalidate_caches(self) -> None:
        for cache in self._caches():
            cache.invalidate()

    def _run(self, action: Callable[[], Any], *, error_prefix: str, mutating: bool = False) -> bool:
        if self.is_loading:
            self.status_message = BUSY_MESSAGE
            return False

        self.is_loading = True
        try:
            action()
            return True
        except ApiError as exc:
            self.status_message = f"{error_prefix}: {exc.detail}"
        except httpx.HTTPError as exc:
            logger.warning("request to rental API failed: %s", exc)
            self.status_message = f"Error: {exc}"
        finally:
            if mutating:
                self._invalidate_caches()
            self.is_loading = False
        return False


class CustomersState(_ClientState):
    def __init__(self, api: MovieRentalApiClient) -> None:
        super().__init__(api)
        self.name = ""
        self.email = ""
        self.phone = ""
        self._customers = ReadThroughCache(api.list_customers)

    def _caches(self) -> list[ReadThroughCache]:
        return [self._customers]

    @property
    def customers(self) -> list[dict[str, Any]]:
        return self._customers.get()

    def refresh(self) -> bool:
        self._customers.invalidate()
        return self._run(self._customers.get, error_prefix="Error loading customers")

    def save_customer(self) -> bool:
        if not self.name.strip():
            self.status_message = "Name field is required."
            return False

        def _save() -> None:
            self._api.save_customer(self.name.strip(), self.email.strip() or None, self.phone.strip() or None)
            self.status_message = "Customer added!"
            self.name = self.email = self.phone = ""

        return self._run(_save, error_prefix="Save failed", mutating=True)


class MoviesState(_ClientState):
    def __init__(self, api: MovieRentalApiClient) -> None:
        super().__init__(api)
        self.title = ""
        self._movies = ReadThroughCache(api.list_movies)

    def _caches(self) -> list[ReadThroughCache]:
        return [self._movies]

    @property
    def movies(self) -> list[dict[str, Any]]:
        return self._movies.get()

    def refresh(self) -> bool:
        self._movies.invalidate()
        return self._run(self._movies.get, error_prefix="Error loading movies")

    def save_movie(self) -> bool:
        if not self.title.strip():
            self.status_message = "Title field is required."
            return False

        def _save() -> None:
            self._api.save_movie(self.title.strip())
            self.status_message = "Movie added!"
            self.title = ""

        return self._run(_save, error_prefix="Save failed", mutating=True)


class RentalsState(_ClientState):
    def __init__(self, api: MovieRentalApiClient) -> None:
        super().__init__(api)
        self.days_rented = 0
        self.payment_value = Decimal("0")
        self.selected_payment_method = PaymentMethod.MBWAY
        self.customer_to_search = ""
        self.rentals: list[dict[str, Any]] = []
        self.selected_customer: Optional[dict[str, Any]] = None
        self.selected_movie: Optional[dict[str, Any]] = None
        self._customers = ReadThroughCache(api.list_customers)
        self._movies = ReadThroughCache(api.list_movies)

    def _caches(self) -> list[ReadThroughCache]:
        return [self._customers, self._movies]

    @property
    def payment_methods(self) -> list[PaymentMethod]:
        return list(PaymentMethod)

    @property
    def customers(self) -> list[dict[str, Any]]:
        return self._customers.get()

    @property
    def movies(self) -> list[dict[str, Any]]:
        return self._movies.get()

    def _reset_selections(self) -> None:
        self.selected_customer = next(iter(self._customers.get()), None)
        self.selected_movie = next(iter(self._movies.get()), None)

    def load(self) -> bool:
        self._invalidate_caches()
        return self._run(self._reset_selections, error_prefix="Error loading customers and movies")

    def clear_form(self) -> None:
        self.days_rented = 0
        self.payment_value = Decimal("0")
        self._reset_selections()

    def save_rental(self) -> bool:
        if self.selected_customer is None or self.selected_movie is None:
            self.status_message = "Please select both customer and movie"
            return False
        if self.days_rented <= 0:
            self.status_message = "Days rented must be greater than zero"
            return False

        def _save() -> None:
            self._api.save_rental(
                days_rented=self.days_rented,
                payment_method=PaymentMethod(self.selected_payment_method).value,
                payment_value=self.payment_value,
                customer_id=self.selected_customer["id"],
                movie_id=self.selected_movie["id"],
            )
            self.status_message = "Rental added!"

        saved = self._run(_save, error_prefix="Save failed", mutating=True)
        if saved:
            self._run(self.clear_form, error_prefix="Error reloading customers and movies")
        return saved

    def search(self) -> bool:
        def _search() -> None:
            self.rentals = self._api.search_rentals(self.customer_to_search)

        return self._run(_search, error_prefix="Error loading rentals")
