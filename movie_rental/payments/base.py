from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class PaymentProviderError(RuntimeError):
    """Falha interna do provedor (rede, autenticação), distinta de recusa."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"Payment provider {provider} error: {message}")
        self.provider = provider


class PaymentProvider(Protocol):
    """Contrato de liquidação de um método de pagamento.

    Cada chamada a ``pay`` é uma nova tentativa de cobrança: o chamador não
    deve repeti-la para a mesma locação. Recusa é reportada como ``False``;
    falhas internas do provedor levantam ``PaymentProviderError``.
    """

    name: str

    def pay(self, amount: Decimal) -> bool:
        ...
