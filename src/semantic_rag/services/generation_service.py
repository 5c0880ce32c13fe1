"""Answer generation through LiteLLM.

Builds the instruction from the user prompt and the retrieved context, sends
it with a fixed system preamble, and returns the first completion.
"""

from typing import Any, Dict, List, Optional

from litellm import acompletion
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from semantic_rag.config import Settings
from semantic_rag.utils.errors import GenerationError
from semantic_rag.utils.logging import get_logger

logger = get_logger("generation_service")


def build_user_message(prompt: str, context: str) -> str:
    """Combine the prompt and retrieved context into one instruction."""
    return f"{prompt}\n\nProvided context:\n{context}"


def _field(obj: Any, name: str) -> Any:
    """Read a field from a LiteLLM response object or a plain dict."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class GenerationService:
    """Service for turning (prompt, context) into an answer.

    Uses LiteLLM so any provider it routes to can back the service; the model
    comes from `GENERATION_MODEL`.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self.model = settings.generation.model
        self.system_prompt = settings.generation.system_prompt

    def build_messages(self, prompt: str, context: str) -> List[Dict[str, str]]:
        """Build the chat messages for one request."""
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": build_user_message(prompt, context)},
        ]

    async def _call_llm(self, messages: List[Dict[str, str]]) -> Any:
        """Call the completion API once.

        Raises:
            GenerationError: If the call fails or times out.
        """
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "timeout": self._settings.generation.timeout,
            # Retries are owned by _call_with_retry; LiteLLM and the provider SDK must not add their own
            "num_retries": 0,
            "max_retries": 0,
        }
        if self._settings.openai.api_key:
            params["api_key"] = self._settings.openai.api_key
        if self._settings.openai.base_url:
            params["api_base"] = self._settings.openai.base_url
        if self._settings.generation.temperature is not None:
            params["temperature"] = self._settings.generation.temperature
        if self._settings.generation.max_tokens:
            params["max_tokens"] = self._settings.generation.max_tokens

        try:
            logger.debug(f"Calling completion model: {self.model}")
            return await acompletion(**params)
        except Exception as e:
            logger.error(
                f"Completion call failed for model {self.model}: {e}",
                extra={"model": self.model, "error_type": type(e).__name__},
            )
            raise GenerationError(
                message=f"Completion call failed: {str(e)}",
                model=self.model,
                details={"error_type": type(e).__name__, "error_message": str(e)},
            ) from e

    async def _call_with_retry(self, messages: List[Dict[str, str]]) -> Any:
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._settings.generation.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(GenerationError),
        ):
            with attempt:
                return await self._call_llm(messages)
        raise GenerationError("Completion retries exhausted", model=self.model)

    @staticmethod
    def extract_content(response: Any) -> Optional[str]:
        """Return the first choice's message content, or None."""
        choices = _field(response, "choices")
        if not choices:
            return None
        message = _field(choices[0], "message")
        return _field(message, "content")

    async def generate(self, prompt: str, context: str) -> str:
        """
        Generate an answer for `prompt` grounded on `context`.

        Args:
            prompt: The user's prompt.
            context: Text retrieved from the knowledge collection.

        Returns:
            The model's first completion.

        Raises:
            GenerationError: If there are no choices, the content is empty,
                or the upstream is unreachable.
        """
        response = await self._call_with_retry(self.build_messages(prompt, context))

        if not _field(response, "choices"):
            raise GenerationError("There was no result from the completion model", model=self.model)

        content = self.extract_content(response)
        if not content:
            raise GenerationError("The completion model returned an empty answer", model=self.model)

        logger.info(f"Retrieved result from prompt ({len(content)} chars, model={self.model})")
        return content
