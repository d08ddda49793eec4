"""Value object describing how the reasoning service should be called."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ReasoningProfile:
  """A named model configuration; the client may switch between two of these."""

  name: str
  model: str
  temperature: float = 0.1
  max_tokens: Optional[int] = 4000

  def __post_init__(self) -> None:
    if not self.model:
      raise ValueError('model is required for a reasoning profile')
    if self.max_tokens is not None and self.max_tokens <= 0:
      raise ValueError('max_tokens must be positive when provided')
