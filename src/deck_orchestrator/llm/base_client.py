"""
Abstract base client for LLM inference.

Defines the interface that provider clients must adhere to. This abstraction
keeps the GenerationClient, the queue and the repair pipeline independent of
the provider's HTTP API.
"""

from abc import ABC, abstractmethod

import structlog

from deck_orchestrator.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for provider clients.

    Responsibilities:
    - Send one generation request to the provider
    - Parse the response into LLMGenerationResponse
    - Map provider failures onto llm.exceptions

    Does NOT handle:
    - Retries of any kind (GenerationClient and RequestQueue own those)
    - Timeouts beyond the transport's connect timeout (GenerationClient owns the deadline)
    - Parsing the completion text into a document (ResponseRepairPipeline)
    """

    def __init__(self, base_url: str, **kwargs):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the provider API
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
        )

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Perform exactly one provider call.

        Raises:
            LLMClientError subclass describing the failure
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        ...

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
