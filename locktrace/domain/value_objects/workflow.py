"""Enumerations describing where a workflow run stands."""
from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
  INITIALIZED = 'initialized'
  ANALYZED = 'analyzed'
  GRAPH_BUILT = 'graph-built'
  PROCESSING_FRONTIER = 'processing-frontier'
  ARTIFACT_SYNTHESIZED = 'artifact-synthesized'
  COMPLETE = 'complete'


class Transition(str, Enum):
  """Outcome of the decision function consulted after every node."""
  PROCESS_FRONTIER = 'process_frontier'
  SYNTHESIZE = 'synthesize'
  COMPLETE = 'complete'


class FrontierMode(str, Enum):
  SINGLE = 'single'
  BATCH = 'batch'


class CompletionStatus(str, Enum):
  SUCCESS = 'success'
  PARTIAL = 'partial'
  ERROR = 'error'
