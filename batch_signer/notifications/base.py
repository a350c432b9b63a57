from abc import ABC, abstractmethod


class BaseNotifier(ABC):
    """Contract for presenting user-facing messages.

    ``error`` and ``warning`` are blocking notifications in an interactive
    front end; ``progress`` replaces the current progress text and never
    blocks.
    """

    @abstractmethod
    def info(self, title: str, text: str) -> None: ...

    @abstractmethod
    def success(self, title: str, text: str) -> None: ...

    @abstractmethod
    def warning(self, title: str, text: str) -> None: ...

    @abstractmethod
    def error(self, title: str, text: str) -> None: ...

    @abstractmethod
    def progress(self, text: str) -> None: ...
