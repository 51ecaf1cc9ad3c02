from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from movie_rental.core.errors import ErrorReason, OperationFailedError
from movie_rental.models.customer import Customer
from movie_rental.services.pagination import normalize_page

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None


def get_customer_by_id(db: Session, customer_id: int) -> Customer | None:
    return db.query(Customer).filter(Customer.id == customer_id).first()


def normalize_email(email: str | None) -> str | None:
    cleaned = _clean(email)
    return cleaned.lower() if cleaned else None


def get_customer_by_email(db: Session, email: str | None) -> Customer | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    try:
        return db.query(Customer).filter(Customer.email_normalized == normalized).first()
    except SQLAlchemyError as exc:
        raise OperationFailedError(
            f"Failed to retrieve customer with email {email}",
            reason=ErrorReason.STORAGE_FAILURE,
        ) from exc


def _ensure_email_available(db: Session, email: str | None, *, customer_id: int | None = None) -> None:
    existing = get_customer_by_email(db, email)
    if existing is not None and existing.id != customer_id:
        raise OperationFailedError(
            f"A customer with email '{email}' already exists",
            reason=ErrorReason.CONFLICT,
        )


def save_customer(db: Session, customer: Customer | None) -> Customer:
    """Insere (id 0/None) ou atualiza um cliente.

    E-mail é único sem diferenciar maiúsculas; atualização de id inexistente
    falha com not_found em vez de inserir.
    """
    if customer is None:
        raise OperationFailedError("Customer is required", reason=ErrorReason.VALIDATION)

    name = _clean(customer.name)
    if not name:
        raise OperationFailedError("Customer name cannot be empty", reason=ErrorReason.VALIDATION)
    email = _clean(customer.email)
    phone = _clean(customer.phone)

    if not customer.id:
        _ensure_email_available(db, email)
        target = Customer(name=name, email=email, email_normalized=normalize_email(email), phone=phone)
        db.add(target)
    else:
        target = get_customer_by_id(db, customer.id)
        if target is None:
            raise OperationFailedError(
                f"Customer with ID {customer.id} not found",
                reason=ErrorReason.NOT_FOUND,
            )
        _ensure_email_available(db, email, customer_id=target.id)
        target.name = name
        target.email = email
        target.email_normalized = normalize_email(email)
        target.phone = phone

    try:
        db.commit()
    except IntegrityError as exc:
        # Inserção concorrente com o mesmo e-mail passou pela checagem acima
        db.rollback()
        logger.warning("customer save rejected by unique email index id=%s", customer.id)
        raise OperationFailedError(
            f"A customer with email '{email}' already exists",
            reason=ErrorReason.CONFLICT,
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("customer save failed id=%s", customer.id)
        raise OperationFailedError("Failed to save customer", reason=ErrorReason.STORAGE_FAILURE) from exc

    db.refresh(target)
    logger.info("customer saved id=%s", target.id)
    return target


def list_customers(db: Session, page_size: int | None = None, page_number: int | None = None) -> list[Customer]:
    window = normalize_page(page_size, page_number)
    try:
        return (
            db.query(Customer)
            .order_by(Customer.name.asc(), Customer.id.asc())
            .offset(window.offset)
            .limit(window.page_size)
            .all()
        )
    except SQLAlchemyError as exc:
        raise OperationFailedError("Failed to retrieve customers", reason=ErrorReason.STORAGE_FAILURE) from exc
