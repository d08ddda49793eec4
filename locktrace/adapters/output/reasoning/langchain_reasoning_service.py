"""LangChain/OpenAI implementation of the reasoning service port."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from locktrace.agents.common.llm_factory import build_chat_model
from locktrace.domain.value_objects.reasoning_profile import ReasoningProfile
from locktrace.ports.output.reasoning_service import ReasoningService

ModelFactory = Callable[[ReasoningProfile, str], ChatOpenAI]


class LangChainReasoningService(ReasoningService):
  """Keeps one prompt | model | parser chain per profile."""

  def __init__(self, api_key: str, model_factory: Optional[ModelFactory] = None) -> None:
    self._api_key = api_key
    self._model_factory = model_factory or build_chat_model
    self._chains: Dict[ReasoningProfile, object] = {}

  async def complete(self, prompt: str, profile: ReasoningProfile) -> str:
    chain = self._chain_for(profile)
    return await chain.ainvoke({'payload': prompt})

  def _chain_for(self, profile: ReasoningProfile):
    chain = self._chains.get(profile)
    if chain is None:
      chain = self._build_chain(self._model_factory(profile, self._api_key))
      self._chains[profile] = chain
    return chain

  @staticmethod
  def _build_chain(llm):
    prompt = ChatPromptTemplate.from_messages([
      (
        'system',
        '''You are an expert in reverse engineering web applications from captured HTTP traffic.
Be precise about authentication, session tokens and request ordering.
When asked for code, answer with code only.''',
      ),
      ('human', '{payload}'),
    ])
    return prompt | llm | StrOutputParser()
