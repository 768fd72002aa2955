from abc import ABC, abstractmethod
from typing import Any


class NotifierPort(ABC):
    @abstractmethod
    def notify(self, level: str, message: str, **context: Any) -> None:
        raise NotImplementedError
