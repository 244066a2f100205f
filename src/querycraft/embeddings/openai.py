import asyncio
import os
from typing import List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import PrivateAttr

from querycraft.embeddings.base import Embeddings
from querycraft.errors import InvalidConfigError, UpstreamError


class OpenAIEmbeddings(Embeddings):
    """
    OpenAI embeddings implementation.

    Supports both OpenAI API and compatible endpoints (e.g., Azure OpenAI, local models).
    """

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = "text-embedding-3-small"
    dimensions: Optional[int] = None
    timeout: float = 60.0
    batch_size: int = 64
    max_concurrency: int = 4

    _aclient: AsyncOpenAI = PrivateAttr()
    _dimension: Optional[int] = PrivateAttr(default=None)

    def __init__(self, **data):
        """
        Initialize OpenAI embeddings.

        Args:
            api_key: API key. Falls back to the ``openai_api_key`` setting and the OPENAI_API_KEY env var
            base_url: Base URL for API endpoint. Defaults to OpenAI's API
            model: Model name to use (e.g., "text-embedding-3-small", "text-embedding-3-large")
            dimensions: Optional dimension reduction (only supported by some models)
            timeout: Request timeout in seconds
            batch_size: Number of texts sent per request
            max_concurrency: Number of requests in flight at once
        """
        super().__init__(**data)
        from querycraft.settings import get_settings
        settings = get_settings()
        if self.api_key is None:
            self.api_key = settings.openai_api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise InvalidConfigError(
                "OpenAI API key must be provided either via api_key parameter "
                "or OPENAI_API_KEY environment variable"
            )
        if self.base_url is None:
            self.base_url = settings.openai_base_url
        self._aclient = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        async def _embed(sem: asyncio.Semaphore, batch: List[str]) -> List[List[float]]:
            async with sem:
                kwargs = {"input": batch, "model": self.model}
                if self.dimensions is not None:
                    kwargs["dimensions"] = self.dimensions
                try:
                    response = await self._aclient.embeddings.create(**kwargs)
                except openai.APIError as e:
                    raise UpstreamError(f"OpenAI embedding request failed: {e}", cause=e) from e
                return [item.embedding for item in sorted(response.data, key=lambda d: d.index)]

        sem = asyncio.Semaphore(self.max_concurrency)
        batches = [texts[i:i + self.batch_size] for i in range(0, len(texts), self.batch_size)]
        results = await asyncio.gather(*(_embed(sem, batch) for batch in batches))

        embeddings = [embedding for batch in results for embedding in batch]
        if embeddings and self._dimension is None:
            self._dimension = len(embeddings[0])
        return embeddings

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            from querycraft.settings import get_settings
            return self.dimensions or get_settings().embedding_dimension
        return self._dimension

    def __repr__(self) -> str:
        return f"OpenAIEmbeddings(model='{self.model}', dimension={self._dimension or 'not yet determined'})"
