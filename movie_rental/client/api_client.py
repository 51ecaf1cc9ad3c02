from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx

from movie_rental.core.config import API_BASE_URL, API_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    def __init__(self, status_code: int, detail: str, reason: str | None = None):
        super().__init__(f"API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.reason = reason


def build_http_client(
    base_url: str = API_BASE_URL,
    *,
    timeout: float = API_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Cliente HTTP reutilizável (pool de conexões), criado na raiz da aplicação."""
    return httpx.Client(base_url=base_url, timeout=timeout, transport=transport)


def _error_detail(response: httpx.Response) -> tuple[str, str | None]:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("title") or response.reason_phrase
        return str(detail), data.get("reason")
    return response.text, None


class MovieRentalApiClient:
    def __init__(self, http_client: httpx.Client) -> None:
        self._http = http_client

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        clean_params = {key: value for key, value in (params or {}).items() if value is not None}
        response = self._http.request(method, path, params=clean_params or None, json=json)
        if not response.is_success:
            detail, reason = _error_detail(response)
            logger.warning("API call failed %s %s status=%s detail=%s", method, path, response.status_code, detail)
            raise ApiError(response.status_code, detail, reason)
        return response.json()

    def list_customers(self, page_size: int | None = None, page_number: int | None = None) -> list[dict[str, Any]]:
        return self._request("GET", "customer", params={"pageSize": page_size, "pageNumber": page_number})

    def save_customer(self, name: str, email: str | None = None, phone: str | None = None) -> dict[str, Any]:
        return self._request("POST", "customer", json={"name": name, "email": email, "phone": phone})

    def list_movies(self, page_size: int | None = None, page_number: int | None = None) -> list[dict[str, Any]]:
        return self._request("GET", "movie", params={"pageSize": page_size, "pageNumber": page_number})

    def save_movie(self, title: str) -> dict[str, Any]:
        return self._request("POST", "movie", json={"title": title})

    def save_rental(
        self,
        *,
        days_rented: int,
        payment_method: str,
        payment_value: Decimal | float,
        customer_id: int,
        movie_id: int,
    ) -> dict[str, Any]:
        payload = {
            "daysRented": days_rented,
            "paymentMethod": payment_method,
            "paymentValue": str(payment_value),
            "customerId": customer_id,
            "movieId": movie_id,
        }
        return self._request("POST", "rental", json=payload)

    def search_rentals(self, customer_name: str) -> list[dict[str, Any]]:
        return self._request("GET", "rental", params={"customerName": customer_name})
