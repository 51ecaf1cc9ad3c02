from __future__ import annotations

import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


class MbWayProvider:
    name = "mbway"

    def pay(self, amount: Decimal) -> bool:
        # Implementação provisória: sempre aprova
        logger.info("MB WAY settlement approved amount=%s", amount, extra={"payment_method": self.name})
        return True
