"""Reasoning client wrapper with retries, exponential backoff and a fallback profile."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from locktrace.domain.errors import ReasoningServiceError
from locktrace.domain.value_objects.reasoning_profile import ReasoningProfile
from locktrace.ports.output.reasoning_service import ReasoningService

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class ReasoningResult:
  content: str
  profile: ReasoningProfile
  attempts: int
  switched_after_attempt: Optional[int] = None

  @property
  def profile_switched(self) -> bool:
    return self.switched_after_attempt is not None


class ReasoningClient:
  """Calls the reasoning service on behalf of the orchestrator.

  Each call starts on the primary profile. After failed attempt `n` the
  client waits `backoff_base ** n` seconds; once the second attempt has
  failed, the remaining attempts of that call use the fallback profile. No
  state survives between calls.
  """

  FALLBACK_AFTER_ATTEMPT = 2

  def __init__(
    self,
    service: ReasoningService,
    primary: ReasoningProfile,
    fallback: Optional[ReasoningProfile] = None,
    max_attempts: int = 3,
    backoff_base: float = 2.0,
    timeout: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
  ) -> None:
    if max_attempts < 1:
      raise ValueError('max_attempts must be at least 1')
    self._service = service
    self._primary = primary
    self._fallback = fallback
    self._max_attempts = max_attempts
    self._backoff_base = backoff_base
    self._timeout = timeout
    self._sleep = sleep

  @property
  def primary(self) -> ReasoningProfile:
    return self._primary

  @property
  def fallback(self) -> Optional[ReasoningProfile]:
    return self._fallback

  @property
  def max_attempts(self) -> int:
    return self._max_attempts

  async def invoke(self, payload: str) -> ReasoningResult:
    profile = self._primary
    switched_after: Optional[int] = None
    last_error: Optional[BaseException] = None

    for attempt in range(1, self._max_attempts + 1):
      try:
        logger.debug('Reasoning attempt %d/%d with %s', attempt, self._max_attempts, profile.model)
        content = await self._call(payload, profile)
        return ReasoningResult(
          content=content,
          profile=profile,
          attempts=attempt,
          switched_after_attempt=switched_after,
        )
      except Exception as exc:  # noqa: BLE001
        last_error = exc
        logger.warning(
          'Reasoning attempt %d/%d failed on %s: %s', attempt, self._max_attempts, profile.model, exc
        )

      if attempt == self._max_attempts:
        break

      delay = self._backoff_base ** attempt
      logger.info('Waiting %.1fs before reasoning attempt %d', delay, attempt + 1)
      await self._sleep(delay)

      if attempt == self.FALLBACK_AFTER_ATTEMPT and self._fallback is not None and switched_after is None:
        logger.warning('Switching to fallback profile %s (%s)', self._fallback.name, self._fallback.model)
        profile = self._fallback
        switched_after = attempt

    raise ReasoningServiceError(
      f'Reasoning service failed after {self._max_attempts} attempts: {last_error}',
      last_error=last_error,
      attempts=self._max_attempts,
    )

  async def batch_invoke(self, payloads: Sequence[str]) -> List[ReasoningResult]:
    """Run every payload concurrently; any exhausted call fails the whole batch."""
    if not payloads:
      return []
    logger.info('Invoking reasoning service for a batch of %d payloads', len(payloads))
    outcomes = await asyncio.gather(*(self.invoke(payload) for payload in payloads), return_exceptions=True)

    failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    if failures:
      first = failures[0]
      if not isinstance(first, ReasoningServiceError):
        raise first
      raise ReasoningServiceError(
        f'{len(failures)} of {len(payloads)} batched reasoning calls failed: {first}',
        last_error=first.last_error,
        attempts=first.attempts,
      ) from first
    return [outcome for outcome in outcomes if isinstance(outcome, ReasoningResult)]

  async def _call(self, payload: str, profile: ReasoningProfile) -> str:
    call = self._service.complete(payload, profile)
    if self._timeout is None:
      return await call
    return await asyncio.wait_for(call, timeout=self._timeout)
