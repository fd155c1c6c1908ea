"""Public-protocol (OpenAI chat completions) request models"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class ContentPart(BaseModel):
    """One element of multi-part message content.

    Image parts are accepted so that requests validate, but they are not
    forwarded upstream.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None
    image_url: Optional[dict[str, Any]] = None


class FunctionCall(BaseModel):
    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = ""
    type: str = "function"
    function: FunctionCall


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant", "tool"]
    content: Union[str, list[ContentPart], None] = None
    name: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None
    tool_call_id: Optional[str] = None


class FunctionDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    parameters: Optional[dict[str, Any]] = None


class Tool(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "function"
    function: Optional[FunctionDefinition] = None


class ToolChoiceFunctionName(BaseModel):
    name: str


class ToolChoiceFunction(BaseModel):
    type: Literal["function"] = "function"
    function: ToolChoiceFunctionName


ToolChoice = Union[Literal["auto", "none", "required"], ToolChoiceFunction]


class ChatCompletionRequest(BaseModel):
    """Validated chat completion request as received from a client"""

    model_config = ConfigDict(extra="allow")

    model: str
    messages: list[ChatMessage]
    tools: Optional[list[Tool]] = None
    tool_choice: Optional[ToolChoice] = None
    stream: bool = False
    max_tokens: Optional[int] = None
    max_completion_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stop: Union[str, list[str], None] = None

    def output_token_limit(self) -> Optional[int]:
        """Requested output cap, preferring the legacy max_tokens field."""
        if self.max_tokens is not None:
            return self.max_tokens
        return self.max_completion_tokens

    def stop_sequences(self) -> Optional[list[str]]:
        """Stop sequences normalized to a list."""
        if not self.stop:
            return None
        if isinstance(self.stop, str):
            return [self.stop]
        return list(self.stop)
