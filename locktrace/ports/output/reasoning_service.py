"""Output port for the external reasoning service."""
from __future__ import annotations

from typing import Protocol

from locktrace.domain.value_objects.reasoning_profile import ReasoningProfile


class ReasoningService(Protocol):
  async def complete(self, prompt: str, profile: ReasoningProfile) -> str:
    """Send a prompt using the given profile and return the textual response.

    Any exception counts as a failed attempt; retries are handled by the caller.
    """
    ...
