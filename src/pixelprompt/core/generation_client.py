"""Client for the external text-to-image endpoint.

The endpoint speaks a chat-completions dialect: the prompt goes out as a
single user message and the generated image comes back as a URL embedded
somewhere in the assistant's free-text reply.  :func:`extract_image_url`
is the only place that knows how to find it, and the client accepts a
replacement extractor so a structured-field parser can be swapped in later.

:meth:`ImageGenerationClient.invoke` never raises.  Every outcome, including
network failures, is returned as a :class:`~pixelprompt.core.records.GenerationResult`.
"""

from __future__ import annotations

import logging
import random
import re
import string
from typing import Any, Callable, Optional

import httpx

from pixelprompt.core.config import PixelPromptConfig
from pixelprompt.core.errors import ParseError, TransportError
from pixelprompt.core.records import GenerationResult, now_ms

logger = logging.getLogger(__name__)

IMAGE_URL_PATTERN = re.compile(r"https?://[^\s]+\.(?:jpg|jpeg|png|gif|webp)", re.IGNORECASE)
NO_IMAGE_URL_ERROR = "No image URL found in response"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def mint_generation_id() -> str:
    """Return a fresh ``img_<epoch ms>_<suffix>`` identifier."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"img_{now_ms()}_{suffix}"


def extract_image_url(content: str) -> Optional[str]:
    """Return the first image-file URL in *content*, or ``None``."""
    match = IMAGE_URL_PATTERN.search(content)
    return match.group(0) if match else None


def _message_content(data: Any) -> str:
    """Pull ``choices[0].message.content`` out of a completion body."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class ImageGenerationClient:
    """Sends one prompt to the image model and normalizes the reply.

    Args:
        endpoint_url: Chat-completions endpoint.
        model_id: Model identifier placed in the request body.
        api_key: Bearer token for the ``Authorization`` header.
        customer_id: Value for the ``customerId`` header.
        timeout: Transport timeout in seconds.
        url_extractor: Callable that finds the image URL in reply text.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        endpoint_url: str,
        model_id: str,
        api_key: str,
        customer_id: str,
        *,
        timeout: float | None = None,
        url_extractor: Callable[[str], Optional[str]] = extract_image_url,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint_url = endpoint_url
        self.model_id = model_id
        self.api_key = api_key
        self.customer_id = customer_id
        self.timeout = timeout
        self.url_extractor = url_extractor
        self.transport = transport

    @classmethod
    def from_config(cls, cfg: PixelPromptConfig, **kwargs) -> "ImageGenerationClient":
        return cls(
            endpoint_url=cfg.endpoint_url,
            model_id=cfg.model_id,
            api_key=cfg.api_key,
            customer_id=cfg.customer_id,
            timeout=cfg.request_timeout,
            **kwargs,
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "customerId": self.customer_id,
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def build_payload(self, prompt: str, system_prompt: str | None = None) -> dict:
        """Build the single-message request body.

        When a system prompt is given it is prepended to the prompt,
        separated by a blank line.
        """
        content = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        return {
            "model": self.model_id,
            "messages": [{"role": "user", "content": content}],
        }

    async def _post(self, payload: dict) -> httpx.Response:
        client_kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout
        if self.transport is not None:
            client_kwargs["transport"] = self.transport

        async with httpx.AsyncClient(**client_kwargs) as client:
            return await client.post(self.endpoint_url, headers=self.headers, json=payload)

    async def _request_image_url(self, prompt: str, system_prompt: str | None) -> str:
        response = await self._post(self.build_payload(prompt, system_prompt))

        if not response.is_success:
            logger.error(f"Image API error: {response.status_code} {response.text[:500]}")
            raise TransportError(
                f"API Error: {response.status_code} - {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Image API returned a non-JSON body: {response.text[:500]}")
            raise ParseError(NO_IMAGE_URL_ERROR) from e

        image_url = self.url_extractor(_message_content(data))
        if not image_url:
            logger.error(f"No image URL found in response: {str(data)[:500]}")
            raise ParseError(NO_IMAGE_URL_ERROR)
        return image_url

    async def invoke(self, final_prompt: str, system_prompt: str | None = None) -> GenerationResult:
        """Generate one image for *final_prompt*.

        Args:
            final_prompt: Prompt with any style modifier already applied.
            system_prompt: Optional instruction text prepended to the prompt.

        Returns:
            A success result carrying the image URL, or a failure result
            carrying a human-readable reason.  Both carry a freshly minted id.
        """
        generated_id = mint_generation_id()
        try:
            image_url = await self._request_image_url(final_prompt, system_prompt)
        except (TransportError, ParseError) as e:
            return GenerationResult.failed(str(e), generated_id)
        except Exception as e:
            logger.exception("Image generation request failed")
            return GenerationResult.failed(str(e) or type(e).__name__, generated_id)

        logger.info(f"Generated image {generated_id}: {image_url}")
        return GenerationResult.ok(image_url, generated_id)

    async def test_connection(self) -> bool:
        """Return ``True`` if the endpoint answers a trivial prompt successfully."""
        try:
            response = await self._post(self.build_payload("Test connection"))
        except httpx.HTTPError as e:
            logger.error(f"Connection test failed: {e}")
            return False
        return response.is_success
