from anthropic import AsyncAnthropic
from typing import Optional, Dict, Any
import httpx

from projectdesk.core.config import settings
from projectdesk.core.logging_config import logger


class ClaudeClient:
    """
    Thin async wrapper around the Anthropic Messages API.

    One request per call; errors propagate to the caller, which decides how
    to report them.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        client_kwargs = {"api_key": api_key or settings.ANTHROPIC_API_KEY}

        base_url = base_url if base_url is not None else settings.ANTHROPIC_BASE_URL
        if base_url and base_url.strip():
            client_kwargs["base_url"] = base_url.strip()
            logger.info(f"Using custom Claude API base URL: {base_url}")

        client_kwargs["timeout"] = httpx.Timeout(
            connect=float(settings.CLAUDE_CONNECT_TIMEOUT),
            read=float(settings.CLAUDE_REQUEST_TIMEOUT),
            write=float(settings.CLAUDE_REQUEST_TIMEOUT),
            pool=float(settings.CLAUDE_REQUEST_TIMEOUT)
        )
        # No SDK-level retries: a failed call is reported, not repeated
        client_kwargs["max_retries"] = 0

        self.async_client = AsyncAnthropic(**client_kwargs)
        self.model = settings.CLAUDE_MODEL

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = None,
        temperature: float = None,
    ) -> Dict[str, Any]:
        """
        Generate a single non-streaming response.

        Returns:
            Dict with content, model and token usage
        """
        if max_tokens is None:
            max_tokens = settings.CLAUDE_MAX_TOKENS
        if temperature is None:
            temperature = settings.CLAUDE_TEMPERATURE

        logger.info(f"Claude API: model={self.model}, max_tokens={max_tokens}, prompt_len={len(prompt)}")

        try:
            response = await self.async_client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_prompt or "",
                messages=[{"role": "user", "content": prompt}]
            )
        except Exception as e:
            logger.error(
                f"Claude API error: {type(e).__name__}: {e}",
                extra={
                    "event_type": "claude_api_error",
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                }
            )
            raise

        content = response.content[0].text if response.content else ""
        result = {
            "content": content,
            "model": self.model,
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
            "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            "stop_reason": response.stop_reason,
            "id": response.id
        }
        logger.info(f"Claude API response: id={response.id}, tokens={result['total_tokens']}, stop={response.stop_reason}")
        return result
