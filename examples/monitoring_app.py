"""Example tailoring-platform API with monitoring attached.

Run with:
    uvicorn examples.monitoring_app:app --reload

Configuration comes from TAILORPULSE_* environment variables, e.g.:
    TAILORPULSE_DATABASE_PATH=/tmp/pulse.db
    TAILORPULSE_REDIS_URL=redis://localhost:6379/0
    TAILORPULSE_ALERT_CPU_CRITICAL_PERCENT=85

Endpoints:
    /orders/{order_id}                - sampled application endpoint
    /measurements                     - fails one request in five
    /monitoring/metrics/summary       - last hour at a glance
    /monitoring/metrics/api?timeframe=24h
    /monitoring/metrics/errors?component=measurements
    /monitoring/alerts?status=active
    /monitoring/alerts/{id}/resolve   - PUT to resolve an alert
    /monitoring/errors/recent
    /monitoring/health
    /monitoring/performance?timeframe=7d
    /monitoring/queues?timeframe=24h
"""

import itertools
import logging

from fastapi import HTTPException

from tailorpulse.app import create_app

logger = logging.getLogger("tailor.orders")

app = create_app()

_measurement_calls = itertools.count(1)


@app.get("/orders/{order_id}")
async def get_order(order_id: int) -> dict[str, int | str]:
    """Return an order. Unknown ids are client errors and count as API errors."""
    if order_id > 1000:
        raise HTTPException(status_code=404, detail="order not found")
    return {"id": order_id, "status": "cutting"}


@app.get("/measurements")
async def get_measurements() -> dict[str, float]:
    """Return measurements; every fifth call fails and is reported."""
    if next(_measurement_calls) % 5 == 0:
        # Picked up by the ErrorRecordHandler installed at startup.
        logger.error(
            "Measurement service timed out", extra={"component": "measurements"}
        )
        raise HTTPException(status_code=503, detail="measurements unavailable")
    return {"chest": 101.5, "waist": 86.0, "inseam": 81.0}
