from __future__ import annotations

from typing import Any

from movie_rental.models.rental import PaymentMethod
from movie_rental.payments.base import PaymentProvider
from movie_rental.payments.mbway_provider import MbWayProvider
from movie_rental.payments.paypal_provider import PayPalProvider


class UnsupportedPaymentMethodError(ValueError):
    def __init__(self, method: Any):
        super().__init__(f"Unsupported payment method: {method}")
        self.method = method


class PaymentProviderResolver:
    """Resolve o provedor de pagamento a partir do método da locação.

    Os provedores são instanciados uma única vez e compartilhados; não guardam
    estado entre chamadas.
    """

    def __init__(
        self,
        *,
        mbway: PaymentProvider | None = None,
        paypal: PaymentProvider | None = None,
    ) -> None:
        self._providers: dict[PaymentMethod, PaymentProvider] = {
            PaymentMethod.MBWAY: mbway or MbWayProvider(),
            PaymentMethod.PAYPAL: paypal or PayPalProvider(),
        }

    def resolve(self, method: PaymentMethod | str | None) -> PaymentProvider:
        try:
            normalized = PaymentMethod(method)
        except ValueError as exc:
            raise UnsupportedPaymentMethodError(method) from exc
        return self._providers[normalized]

    def supported_methods(self) -> list[PaymentMethod]:
        return list(self._providers)
