"""Simple dependency wiring helpers."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from locktrace.adapters.input.api.fastapi_adapter import FastAPIAdapter
from locktrace.adapters.input.cli.cli_adapter import CLIAdapter
from locktrace.adapters.output.files.file_artifact_store import FileArtifactStore
from locktrace.adapters.output.files.json_credential_store import JsonCredentialStore
from locktrace.adapters.output.files.json_trace_repository import JsonTraceRepository
from locktrace.adapters.output.reasoning.langchain_reasoning_service import LangChainReasoningService
from locktrace.adapters.presentation.json_presenter import JsonPresenter
from locktrace.adapters.presentation.markdown_presenter import MarkdownPresenter
from locktrace.adapters.presentation.text_presenter import TextPresenter
from locktrace.agents.common.llm_factory import build_profiles
from locktrace.agents.common.reasoning_client import ReasoningClient
from locktrace.agents.trace_agent.graph import TraceAgentRunner
from locktrace.application.handlers.plan_inspection_handler import PlanInspectionHandler
from locktrace.application.handlers.trace_run_handler import REPORT_JSON, REPORT_MARKDOWN, TraceRunHandler
from locktrace.application.services.locktrace_service_impl import LocktraceServiceImpl
from locktrace.common.config import Settings, get_settings
from locktrace.ports.output.reasoning_service import ReasoningService


def create_agent_runner(
  settings: Settings, service: ReasoningService, model: Optional[str] = None
) -> TraceAgentRunner:
  primary, fallback = build_profiles(settings, model)
  client = ReasoningClient(
    service,
    primary,
    fallback,
    max_attempts=settings.max_attempts,
    timeout=settings.request_timeout,
  )
  return TraceAgentRunner(
    reasoning_client=client,
    artifact_store=FileArtifactStore(),
    artifact_path=settings.artifact_path,
  )


def create_plan_inspector() -> PlanInspectionHandler:
  return PlanInspectionHandler(JsonTraceRepository())


@lru_cache(maxsize=1)
def create_locktrace_service() -> LocktraceServiceImpl:
  """Raises `ConfigurationError` when no API key is configured."""
  settings = get_settings()
  service = LangChainReasoningService(settings.require_api_key())

  run_handler = TraceRunHandler(
    agent_runner=create_agent_runner(settings, service),
    trace_repository=JsonTraceRepository(),
    credential_store=JsonCredentialStore(),
    report_store=FileArtifactStore(),
    report_presenters={REPORT_JSON: JsonPresenter(), REPORT_MARKDOWN: MarkdownPresenter()},
    report_dir=settings.report_dir,
    runner_for_model=lambda model: create_agent_runner(settings, service, model),
  )
  return LocktraceServiceImpl(run_handler, create_plan_inspector())


def create_cli_adapter() -> CLIAdapter:
  return CLIAdapter(create_locktrace_service, create_plan_inspector, TextPresenter())


def create_api_adapter() -> FastAPIAdapter:
  return FastAPIAdapter(create_locktrace_service(), JsonPresenter())
