"""
BillSense AI Backend — Abstract LLM Service Interface
=====================================================

What:  Abstract base class defining the contract for text-generation providers.
Why:   AIService builds prompts and parses replies; which model answers them
       is a separate concern. Tests plug in a canned implementation.
How:   Concrete implementations inherit from LLMService and implement
       generate_text() and health_check().
Who:   Called by AIService for every /api/ai request.
"""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """
    Abstract interface for prompt-in, text-out generation.

    Contract:
        - generate_text() accepts a complete prompt and returns the model's reply
        - Implementations handle their own retry logic and error translation
        - All implementation-specific errors are wrapped in LLMServiceError
          (or CircuitBreakerOpenError)

    Implementations:
        - GeminiService: Google Gemini API (default)
    """

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """
        Send a prompt to the model and return its text reply.

        Returns:
            The stripped reply. Never None; an empty reply is "".

        Raises:
            LLMServiceError: When the AI service fails after all retries.
            CircuitBreakerOpenError: When recent failures opened the circuit.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the LLM service is reachable and operational.

        Returns: True if service is reachable, False otherwise. Never raises.
        """
        ...
