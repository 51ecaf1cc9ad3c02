from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from decimal import Decimal, InvalidOperation
from threading import Lock

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload

from movie_rental.core.config import PAYMENT_TIMEOUT_SECONDS
from movie_rental.core.errors import ErrorReason, OperationFailedError
from movie_rental.core.metrics import BOOKED, BookingMetrics, booking_metrics
from movie_rental.models.customer import Customer
from movie_rental.models.rental import PaymentMethod, Rental
from movie_rental.payments.base import PaymentProvider, PaymentProviderError
from movie_rental.payments.resolver import PaymentProviderResolver, UnsupportedPaymentMethodError
from movie_rental.services.customers import get_customer_by_id
from movie_rental.services.movies import get_movie_by_id

logger = logging.getLogger(__name__)

# Mesma escala da coluna rentals.payment_value (Numeric(10, 2))
PAYMENT_VALUE_QUANTUM = Decimal("0.01")
MAX_PAYMENT_VALUE = Decimal("99999999.99")


def _payment_amount(value) -> Decimal:
    if value is None:
        raise OperationFailedError("Payment value must be greater than zero", reason=ErrorReason.VALIDATION)
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise OperationFailedError("Payment value must be a number", reason=ErrorReason.VALIDATION) from exc

    if not amount.is_finite() or amount <= 0:
        raise OperationFailedError("Payment value must be greater than zero", reason=ErrorReason.VALIDATION)
    if amount > MAX_PAYMENT_VALUE:
        raise OperationFailedError(
            f"Payment value must not exceed {MAX_PAYMENT_VALUE}",
            reason=ErrorReason.VALIDATION,
        )
    if amount != amount.quantize(PAYMENT_VALUE_QUANTUM):
        raise OperationFailedError(
            "Payment value must have at most 2 decimal places",
            reason=ErrorReason.VALIDATION,
        )
    return amount.quantize(PAYMENT_VALUE_QUANTUM)


def _method_label(rental: Rental | None) -> str | None:
    try:
        return PaymentMethod(getattr(rental, "payment_method", None)).value
    except ValueError:
        return None


class RentalService:
    """Transação de locação: valida, cobra e só então persiste.

    Uma locação existe no banco se e somente se o pagamento correspondente
    foi aprovado. Falha de gravação após a cobrança não é compensada: fica
    registrada em log CRITICAL para conciliação manual.
    """

    def __init__(
        self,
        resolver: PaymentProviderResolver,
        *,
        payment_timeout_seconds: float = PAYMENT_TIMEOUT_SECONDS,
        max_payment_workers: int = 4,
        metrics: BookingMetrics = booking_metrics,
    ) -> None:
        self._resolver = resolver
        self._payment_timeout_seconds = payment_timeout_seconds
        self._max_payment_workers = max_payment_workers
        self._metrics = metrics
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = Lock()

    def _payment_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_payment_workers,
                    thread_name_prefix="payment",
                )
            return self._executor

    def close(self, *, wait: bool = False) -> None:
        """Encerra o pool de pagamentos; cobranças ainda na fila são canceladas.

        Um novo pool é criado sob demanda se o serviço voltar a ser usado.
        """
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)

    def _validate(self, db: Session, rental: Rental | None) -> Decimal:
        if rental is None:
            raise OperationFailedError("Rental is required", reason=ErrorReason.VALIDATION)

        amount = _payment_amount(rental.payment_value)

        if rental.days_rented is None or rental.days_rented <= 0:
            raise OperationFailedError(
                "Days rented must be greater than zero",
                reason=ErrorReason.VALIDATION,
            )

        if get_customer_by_id(db, rental.customer_id) is None:
            raise OperationFailedError(
                f"Customer with ID {rental.customer_id} not found",
                reason=ErrorReason.NOT_FOUND,
            )
        if get_movie_by_id(db, rental.movie_id) is None:
            raise OperationFailedError(
                f"Movie with ID {rental.movie_id} not found",
                reason=ErrorReason.NOT_FOUND,
            )
        return amount

    def _resolve_provider(self, rental: Rental) -> PaymentProvider:
        try:
            return self._resolver.resolve(rental.payment_method)
        except UnsupportedPaymentMethodError as exc:
            raise OperationFailedError(str(exc), reason=ErrorReason.VALIDATION) from exc

    def _charge(self, provider: PaymentProvider, amount: Decimal) -> None:
        future = self._payment_executor().submit(provider.pay, amount)
        try:
            approved = future.result(timeout=self._payment_timeout_seconds)
        except FutureTimeoutError as exc:
            # Timeout conta como recusa: nunca gravar sem confirmação
            if future.cancel():
                logger.warning(
                    "payment timed out in queue after %ss, charge cancelled provider=%s amount=%s",
                    self._payment_timeout_seconds,
                    provider.name,
                    amount,
                    extra={"payment_method": provider.name},
                )
            else:
                logger.error(
                    "payment timed out after %ss while running, outcome unknown provider=%s amount=%s",
                    self._payment_timeout_seconds,
                    provider.name,
                    amount,
                    extra={"reason": ErrorReason.PAYMENT_FAILED.value, "payment_method": provider.name},
                )
            raise OperationFailedError("Payment failed", reason=ErrorReason.PAYMENT_FAILED) from exc
        except PaymentProviderError as exc:
            logger.error("payment provider error provider=%s: %s", provider.name, exc)
            raise OperationFailedError("Payment failed", reason=ErrorReason.PAYMENT_FAILED) from exc

        if not approved:
            logger.info("payment declined provider=%s amount=%s", provider.name, amount)
            raise OperationFailedError("Payment failed", reason=ErrorReason.PAYMENT_FAILED)

    def _book(self, db: Session, rental: Rental | None) -> Rental:
        amount = self._validate(db, rental)
        provider = self._resolve_provider(rental)
        rental.payment_method = PaymentMethod(rental.payment_method)
        rental.payment_value = amount

        self._charge(provider, amount)

        try:
            db.add(rental)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.critical(
                "rental not stored after successful payment method=%s amount=%s customer_id=%s movie_id=%s",
                provider.name,
                amount,
                rental.customer_id,
                rental.movie_id,
                exc_info=True,
                extra={"reason": ErrorReason.STORAGE_FAILURE.value, "payment_method": provider.name},
            )
            raise OperationFailedError("Failed to save rental", reason=ErrorReason.STORAGE_FAILURE) from exc

        db.refresh(rental)
        logger.info(
            "rental booked id=%s customer_id=%s movie_id=%s",
            rental.id,
            rental.customer_id,
            rental.movie_id,
            extra={"rental_id": rental.id, "payment_method": provider.name},
        )
        return rental

    def save_rental(self, db: Session, rental: Rental | None) -> Rental:
        try:
            saved = self._book(db, rental)
        except OperationFailedError as exc:
            self._metrics.record(exc.reason.value, _method_label(rental))
            raise
        self._metrics.record(BOOKED, saved.payment_method.value)
        return saved

    def get_rentals_by_customer_name(self, db: Session, customer_name: str | None) -> list[Rental]:
        if customer_name is None or not customer_name.strip():
            return []

        try:
            return (
                db.query(Rental)
                .join(Rental.customer)
                .options(contains_eager(Rental.customer), joinedload(Rental.movie))
                .filter(Customer.name.icontains(customer_name, autoescape=True))
                .order_by(Rental.id.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise OperationFailedError(
                "Failed to retrieve rentals by customer name",
                reason=ErrorReason.STORAGE_FAILURE,
            ) from exc
