"""Helpers to initialize LLM clients used by agents."""
from __future__ import annotations

from typing import Optional, Tuple

from langchain_openai import ChatOpenAI

from locktrace.common.config import Settings
from locktrace.domain.value_objects.reasoning_profile import ReasoningProfile


def build_profiles(settings: Settings, model: Optional[str] = None) -> Tuple[ReasoningProfile, ReasoningProfile]:
  """Primary and fallback profiles; `model` overrides the primary model."""
  primary = ReasoningProfile(
    name='primary',
    model=model or settings.model,
    temperature=settings.temperature,
    max_tokens=settings.max_tokens,
  )
  fallback = ReasoningProfile(
    name='fallback',
    model=settings.fallback_model,
    temperature=settings.temperature,
    max_tokens=settings.max_tokens,
  )
  return primary, fallback


def build_chat_model(profile: ReasoningProfile, api_key: str) -> ChatOpenAI:
  return ChatOpenAI(
    model=profile.model,
    temperature=profile.temperature,
    max_tokens=profile.max_tokens,
    api_key=api_key,
  )
