from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from booking_console.application.use_cases.booking_form import BookingForm


class FormSessionStorePort(ABC):
    @abstractmethod
    def add(self, form: "BookingForm") -> str:
        """Register a form and return its id."""
        raise NotImplementedError

    @abstractmethod
    def get(self, form_id: str) -> "BookingForm":
        """Raises FormSessionNotFound for unknown ids."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, form_id: str) -> "BookingForm | None":
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
