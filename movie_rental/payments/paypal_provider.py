from __future__ import annotations

import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


class PayPalProvider:
    name = "paypal"

    def pay(self, amount: Decimal) -> bool:
        # Implementação provisória: sempre aprova
        logger.info("PayPal settlement approved amount=%s", amount, extra={"payment_method": self.name})
        return True
