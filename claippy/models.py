import json
import logging
from typing import AsyncIterator, Dict, List, Optional

from claippy.exceptions import TransportError
from claippy.helpers.requests import model_request_parser
from claippy.llm import litellm
from claippy.prompts import DEFAULT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "bedrock/anthropic.claude-3-sonnet-20240229-v1:0"
DEFAULT_MAX_TOKENS = 4096

request_timeout = 600


def chunk_text(chunk) -> Optional[str]:
    """Text carried by one streaming chunk, or None for non-text events."""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return None
    delta = getattr(choices[0], "delta", None)
    content = getattr(delta, "content", None)
    if isinstance(content, str) and content:
        return content
    return None


class Model:
    """
    Remote chat model reached through litellm.

    ``stream`` is the only call that talks to the network. Retries and
    timeouts are left to litellm and the provider.
    """

    def __init__(
        self,
        name: str = DEFAULT_MODEL_NAME,
        system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT,
        temperature: Optional[float] = 0.0,
        max_tokens: Optional[int] = DEFAULT_MAX_TOKENS,
        aws_region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        timeout: Optional[float] = None,
        extra_params: Optional[Dict] = None,
    ):
        self.name = name
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.aws_region = aws_region
        self.aws_profile = aws_profile
        self.timeout = timeout
        self.extra_params = dict(extra_params or {})

    def __str__(self):
        return self.name

    def build_request(self, messages: List[Dict[str, str]]) -> Dict:
        messages = model_request_parser(messages)
        if self.system_prompt:
            messages = [dict(role="system", content=self.system_prompt)] + messages

        kwargs = dict(model=self.name, stream=True)
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens
        if self.aws_region:
            kwargs["aws_region_name"] = self.aws_region
        if self.aws_profile:
            kwargs["aws_profile_name"] = self.aws_profile
        if self.extra_params:
            kwargs.update(self.extra_params)
        kwargs["timeout"] = self.timeout or request_timeout
        kwargs["messages"] = messages
        return kwargs

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """
        Send the conversation and yield response text in arrival order.

        Raises TransportError if the request cannot be made or the stream
        breaks off; text yielded before the failure stays valid.
        """
        kwargs = self.build_request(messages)
        logger.debug("Request body: %s", json.dumps(kwargs, default=str))

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as err:
            raise TransportError(f"{self.name} request failed: {err}") from err

        logger.info("Streaming response from %s", self.name)
        try:
            async for chunk in response:
                text = chunk_text(chunk)
                if text:
                    yield text
        except Exception as err:
            raise TransportError(f"{self.name} response stream failed: {err}") from err
