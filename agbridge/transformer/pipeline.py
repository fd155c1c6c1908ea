# Bridge Pipeline
#
# This module provides the BridgePipeline class that orchestrates the
# complete transformation flow between the OpenAI and Antigravity
# protocols. It is the single entry point for the HTTP layer.

import time
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Optional, Union

from agbridge.core.utils import resolve_model
from agbridge.models.config import ThinkingSettings
from agbridge.models.openai import ChatCompletionRequest
from agbridge.utils.streaming import relay_stream

from .request import RequestTransformer
from .response import ResponseTransformer
from .unified import Clock


@dataclass
class PreparedRequest:
    """An outbound request ready for the Antigravity client."""

    model: str
    internal_model: str
    stream: bool
    body: dict[str, Any]


class BridgePipeline:
    """
    Orchestrates request and response transformation for one deployment.

    Flow:
        Client Request -> validate -> resolve model -> RequestTransformer -> Antigravity
        Antigravity -> ResponseTransformer / relay_stream -> Client Response
    """

    def __init__(
        self,
        thinking: Optional[ThinkingSettings] = None,
        model_aliases: Optional[dict[str, str]] = None,
        clock: Clock = time.time,
    ) -> None:
        self._request_transformer = RequestTransformer(thinking)
        self._response_transformer = ResponseTransformer(clock)
        self._model_aliases = model_aliases
        self._clock = clock

    def prepare_request(
        self, raw: Union[ChatCompletionRequest, dict[str, Any]]
    ) -> PreparedRequest:
        """
        Validate and transform a client request.

        Raises:
            pydantic.ValidationError: If ``raw`` is not a valid request
        """
        if isinstance(raw, ChatCompletionRequest):
            request = raw
        else:
            request = ChatCompletionRequest.model_validate(raw)

        internal_model = resolve_model(request.model, self._model_aliases)
        # Thinking detection runs against the name the upstream will see
        outbound = request.model_copy(update={"model": internal_model})

        return PreparedRequest(
            model=request.model,
            internal_model=internal_model,
            stream=request.stream,
            body=self._request_transformer.transform(outbound),
        )

    def transform_response(self, document: dict[str, Any], model: str) -> dict[str, Any]:
        """Transform a complete Antigravity response for the client."""
        return self._response_transformer.transform(document, model)

    def stream(
        self, byte_source: AsyncIterable[bytes], model: str
    ) -> AsyncIterator[str]:
        """Relay an Antigravity SSE stream as OpenAI SSE frames."""
        return relay_stream(byte_source, model, self._clock)
