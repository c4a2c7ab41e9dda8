from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger
from openai import APIError, AsyncOpenAI

from ..settings import settings


class GenerationClient:
    """Chat-completion calls over an ordered model list.

    Returns raw model text or None; never parses it and never raises to the caller.
    Without an API key no client is built and every call short-circuits to None.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        models: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.models: List[str] = list(models or settings.LLM_MODELS)
        self._client: Optional[AsyncOpenAI] = None
        if self.api_key:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=base_url or settings.LLM_BASE_URL,
                timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        model: str,
        system: str,
        user: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Optional[str]:
        """One attempt against one model. None on any failure."""
        if self._client is None:
            return None

        logger.info(f"[llm] calling model={model}")
        try:
            resp = await self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=max_tokens or settings.LLM_MAX_TOKENS,
                temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
            )
        except APIError as e:
            status = getattr(e, "status_code", None)
            logger.warning(f"[llm] model={model} failed (status={status}): {getattr(e, 'message', str(e))}")
            return None
        except Exception as e:
            logger.exception(f"[llm] model={model} unexpected error: {e}")
            return None

        content = resp.choices[0].message.content if resp.choices else None
        if not content or not content.strip():
            logger.warning(f"[llm] model={model} returned an empty completion")
            return None

        logger.info(f"[llm] model={model} ok ({len(content)} chars)")
        return content

    async def generate(
        self,
        system: str,
        user: str,
        models: Optional[Sequence[str]] = None,
        **kwargs,
    ) -> Optional[str]:
        """First model whose call succeeds wins; None once the list is exhausted."""
        for model in models or self.models:
            text = await self.complete(model, system, user, **kwargs)
            if text is not None:
                return text
        logger.error("[llm] all models exhausted")
        return None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


async def get_generation_client():
    client = GenerationClient()
    try:
        yield client
    finally:
        await client.aclose()
