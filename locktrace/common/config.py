"""Application-level configuration utilities."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from locktrace.domain.errors import ConfigurationError

T = TypeVar('T')


@dataclass(frozen=True)
class Settings:
  """Immutable application settings loaded from environment variables."""

  openai_api_key: Optional[str] = None
  model: str = 'gpt-4o'
  fallback_model: str = 'gpt-4o-mini'
  temperature: float = 0.1
  max_tokens: int = 4000
  max_attempts: int = 3
  request_timeout: Optional[float] = None
  artifact_path: str = 'forged_integration.py'
  report_dir: str = '.'
  log_level: str = 'INFO'

  def require_api_key(self) -> str:
    if not self.openai_api_key:
      raise ConfigurationError('OPENAI_API_KEY must be set in environment or .env file')
    return self.openai_api_key


def _parse(name: str, raw: Optional[str], cast: Callable[[str], T], default: T) -> T:
  if raw is None or not raw.strip():
    return default
  try:
    return cast(raw.strip())
  except ValueError as exc:
    raise ConfigurationError(f'{name} has an invalid value: {raw!r}') from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings from environment variables once per process."""
  env_path = Path(__file__).resolve().parents[2] / '.env'
  if env_path.exists():
    load_dotenv(env_path)
  else:
    load_dotenv()

  from os import getenv

  max_attempts = _parse('LOCKTRACE_MAX_ATTEMPTS', getenv('LOCKTRACE_MAX_ATTEMPTS'), int, 3)
  if max_attempts < 1:
    raise ConfigurationError('LOCKTRACE_MAX_ATTEMPTS must be at least 1')

  log_level = (getenv('LOCKTRACE_LOG_LEVEL') or 'INFO').upper()
  if (getenv('DEBUG') or '').lower() == 'true':
    log_level = 'DEBUG'

  return Settings(
    openai_api_key=getenv('OPENAI_API_KEY') or None,
    model=getenv('LOCKTRACE_MODEL') or 'gpt-4o',
    fallback_model=getenv('LOCKTRACE_FALLBACK_MODEL') or 'gpt-4o-mini',
    temperature=_parse('LOCKTRACE_TEMPERATURE', getenv('LOCKTRACE_TEMPERATURE'), float, 0.1),
    max_tokens=_parse('LOCKTRACE_MAX_TOKENS', getenv('LOCKTRACE_MAX_TOKENS'), int, 4000),
    max_attempts=max_attempts,
    request_timeout=_parse('LOCKTRACE_TIMEOUT', getenv('LOCKTRACE_TIMEOUT'), float, None),
    artifact_path=getenv('LOCKTRACE_ARTIFACT_PATH') or 'forged_integration.py',
    report_dir=getenv('LOCKTRACE_REPORT_DIR') or '.',
    log_level=log_level,
  )
