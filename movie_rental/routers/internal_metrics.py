from __future__ import annotations

from fastapi import APIRouter

from movie_rental.core.metrics import booking_metrics, request_metrics

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("")
def service_metrics():
    return {
        "endpoints": request_metrics.snapshot(),
        "bookings": booking_metrics.snapshot(),
    }
