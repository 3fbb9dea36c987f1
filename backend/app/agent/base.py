from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from app.agent.llm_client import LLMClient
from app.core.config import settings

InType = TypeVar("InType")
OutType = TypeVar("OutType", bound=BaseModel)

class BaseAgent(ABC, Generic[InType, OutType]):
    """Abstract base class for agents calling the generation endpoint."""

    def __init__(self, model_name: str | None = None):
        self.model_name = model_name or settings.MODEL_DEFAULT
        self._llm: LLMClient | None = None

    @property
    def llm(self) -> LLMClient:
        # Built on first use so a missing API key only fails the call itself
        if self._llm is None:
            self._llm = LLMClient(model_name=self.model_name)
        return self._llm

    @abstractmethod
    async def run(self, input_data: InType) -> OutType:
        """Run the agent on the given input to produce the output artifact."""
        pass
