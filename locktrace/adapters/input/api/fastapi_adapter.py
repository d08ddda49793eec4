"""FastAPI adapter exposing HTTP endpoints."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field, field_validator

from locktrace.application.commands.trace_run_command import TraceRunCommand
from locktrace.domain.errors import ValidationError
from locktrace.domain.value_objects.workflow import FrontierMode
from locktrace.ports.input.locktrace_service import LocktraceService
from locktrace.ports.input.result_presenter import ResultPresenter


class FrontierModeEnum(str, Enum):
  single = 'single'
  batch = 'batch'


class RunPayload(BaseModel):
  """Payload for a trace run."""
  target: str = Field(..., description='What the reconstructed integration should accomplish')
  trace_path: str = Field(default='network_requests.json', description='HAR-style capture file on the server')
  credentials_path: Optional[str] = Field(default=None, description='Cookie JSON on the server')
  max_steps: int = Field(default=20, ge=0, le=500, description='Frontier passes allowed')
  variables: Dict[str, str] = Field(default_factory=dict, description='Values available to the prompts')
  synthesize: bool = Field(default=True, description='Write the integration module')
  key_model: Optional[str] = Field(default=None, description='Override the primary model')
  batch_size: Optional[int] = Field(default=None, ge=1, description='Endpoints per pass (capped at 25)')
  frontier_mode: FrontierModeEnum = Field(default=FrontierModeEnum.batch, description='single or batch')
  resilient: bool = Field(default=True, description='Isolate failures to the endpoint that failed')
  report_dir: Optional[str] = Field(default=None, description='Where to write the reports')

  model_config = {
    'json_schema_extra': {
      'examples': [
        {
          'target': 'download monthly invoices',
          'trace_path': 'captures/billing.har',
          'credentials_path': 'captures/cookies.json',
          'variables': {'month': '2024-05'},
          'max_steps': 10,
        }
      ]
    }
  }

  @field_validator('target')
  @classmethod
  def validate_target(cls, v: str) -> str:
    if not v.strip():
      raise ValueError('target must not be blank')
    return v


class PlanPayload(BaseModel):
  trace_path: str = Field(..., description='HAR-style capture file on the server')
  target: Optional[str] = Field(default=None, description='Goal used to pick the master endpoint')
  method: Optional[str] = Field(default=None, description='Only endpoints with this HTTP method')
  domain: Optional[str] = Field(default=None, description='Only endpoints whose host contains this text')


class FastAPIAdapter:
  def __init__(self, service: LocktraceService, presenter: ResultPresenter):
    self._service = service
    self._presenter = presenter
    self.app = FastAPI(
      title='Locktrace API',
      version='0.1.0',
      description='Reconstructs the API workflow behind a captured browser trace '
                  'and synthesizes an integration module for it.',
    )
    self._configure_routes()

  def _configure_routes(self) -> None:
    @self.app.post('/api/v1/runs', tags=['Runs'])
    async def create_run(payload: RunPayload):
      """
      Analyse a trace and synthesize an integration module.

      The agent will:
      1. Normalize the captured requests and drop static and tracking noise
      2. Build a dependency plan (authentication, resource and temporal ordering)
      3. Ask the reasoning service about every endpoint, frontier by frontier
      4. Write the integration module and the run reports
      """
      try:
        command = TraceRunCommand(
          target=payload.target,
          trace_path=payload.trace_path,
          credentials_path=payload.credentials_path,
          max_steps=payload.max_steps,
          variables=dict(payload.variables),
          synthesize_artifact=payload.synthesize,
          key_model=payload.key_model,
          batch_size=payload.batch_size,
          frontier_mode=FrontierMode(payload.frontier_mode.value),
          resilient=payload.resilient,
          report_dir=payload.report_dir,
        )
      except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
      try:
        report = await self._service.execute_run(command)
        return self._json(self._presenter.present(report))
      except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=500, detail=str(exc))

    @self.app.post('/api/v1/plans', tags=['Plans'])
    async def inspect_plan(payload: PlanPayload):
      """Build the execution plan for a trace without calling the reasoning service."""
      try:
        inspection = self._service.inspect_trace(
          payload.trace_path, payload.target, method=payload.method, domain=payload.domain
        )
      except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
      return self._json(self._presenter.present_plan(inspection))

    @self.app.get('/health', tags=['Health'])
    async def health():
      """Health check endpoint."""
      return {'status': 'healthy'}

  @staticmethod
  def _json(rendered) -> Response:
    if isinstance(rendered, str):
      return Response(content=rendered, media_type='application/json')
    return rendered
