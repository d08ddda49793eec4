"""Error taxonomy shared by every layer."""
from __future__ import annotations

from typing import Any, Optional


class LocktraceError(Exception):
  """Base exception for locktrace errors."""


class ValidationError(LocktraceError):
  """The trace file is missing, unreadable or not a trace. Fatal."""

  def __init__(self, message: str, path: Optional[str] = None):
    super().__init__(message)
    self.path = path


class EntryParseError(LocktraceError):
  """A single capture entry could not be turned into an Endpoint."""

  def __init__(self, message: str, position: Optional[int] = None, entry: Any = None):
    super().__init__(message)
    self.position = position
    self.entry = entry

  def describe(self) -> str:
    if self.position is None:
      return str(self)
    return f'entry #{self.position}: {self}'


class ReasoningServiceError(LocktraceError):
  """The reasoning service kept failing after every retry."""

  def __init__(self, message: str, last_error: Optional[BaseException] = None, attempts: int = 0):
    super().__init__(message)
    self.last_error = last_error
    self.attempts = attempts


class ArtifactWriteError(LocktraceError):
  """A synthesized artifact or report could not be persisted."""

  def __init__(self, message: str, path: Optional[str] = None):
    super().__init__(message)
    self.path = path


class ConfigurationError(LocktraceError):
  """Settings are missing or invalid. Fatal."""
