import logging

from fastapi import FastAPI

from booking_console.api.v1.forms import router as forms_router
from booking_console.api.v1.invoices import router as invoices_router
from booking_console.core.config import settings

# Keys passed through `extra=` by the form, search and admin API code.
CONTEXT_KEYS = (
    "form_id",
    "node",
    "selected",
    "refetch",
    "generation",
    "query",
    "page",
    "count",
    "provider",
    "quantity",
    "total",
    "path",
    "status",
    "row",
    "error",
    "reason",
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, "", []):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Booking Console Forms", version="1.0.0")

app.include_router(forms_router, prefix="/api/v1", tags=["forms"])
app.include_router(invoices_router, prefix="/api/v1", tags=["invoices"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.ENV}
