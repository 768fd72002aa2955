from __future__ import annotations

import uuid

from booking_console.application.exceptions import FormSessionNotFound
from booking_console.application.ports.form_session_store import FormSessionStorePort
from booking_console.application.use_cases.booking_form import BookingForm


class MemoryFormSessionStore(FormSessionStorePort):
    def __init__(self, limit: int = 500) -> None:
        self._forms: dict[str, BookingForm] = {}
        self._limit = limit

    def add(self, form: BookingForm) -> str:
        form_id = uuid.uuid4().hex
        form.form_id = form_id
        self._forms[form_id] = form
        # Oldest forms go first once the limit is hit.
        while len(self._forms) > self._limit:
            oldest = next(iter(self._forms))
            self._forms.pop(oldest).close()
        return form_id

    def get(self, form_id: str) -> BookingForm:
        form = self._forms.get(form_id)
        if form is None:
            raise FormSessionNotFound(form_id)
        return form

    def remove(self, form_id: str) -> BookingForm | None:
        form = self._forms.pop(form_id, None)
        if form is not None:
            form.close()
        return form

    def __len__(self) -> int:
        return len(self._forms)
