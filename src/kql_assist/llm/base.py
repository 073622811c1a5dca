"""Provider-independent LLM interface for query generation."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class LLMError(RuntimeError):
    """Raised when an LLM call cannot produce a response."""


class ProviderError(LLMError):
    """Raised on transport failures: unreachable host, non-2xx, bad envelope."""


class GenerationCancelled(LLMError):
    """Raised when the run deadline expires or the run is cancelled."""


@dataclass
class Deadline:
    """Wall-clock budget and cancellation flag shared by one run."""

    seconds: float | None = None
    _expires_at: float | None = field(init=False, default=None, repr=False)
    _cancelled: threading.Event = field(
        init=False, default_factory=threading.Event, repr=False
    )

    def __post_init__(self) -> None:
        if self.seconds is not None:
            self._expires_at = time.monotonic() + self.seconds

    def cancel(self) -> None:
        """Abort the run at its next check, e.g. from a host program's other thread."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left, ``None`` when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def check(self) -> None:
        if self.cancelled:
            raise GenerationCancelled("Generation was cancelled.")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise GenerationCancelled(
                f"Generation deadline of {self.seconds:g}s exceeded."
            )


class Provider(ABC):
    """Abstract text-generation provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier, for example ``ollama``."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name used for completions."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        temperature: float,
        *,
        timeout: float | None = None,
    ) -> str:
        """Return the model's text response for a single user prompt."""
