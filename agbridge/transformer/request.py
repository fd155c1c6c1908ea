# OpenAI -> Antigravity Request Transformer
#
# Converts OpenAI Chat Completions requests into Antigravity
# generateContent request bodies.

import json
from typing import Any, Optional, Union

from agbridge.core.config import get_config
from agbridge.core.logging import get_logger
from agbridge.models.config import ThinkingSettings
from agbridge.models.openai import (
    ChatCompletionRequest,
    ChatMessage,
    Tool,
    ToolChoice,
    ToolChoiceFunction,
)
from agbridge.utils.thinking import apply_thinking_config

from .schema import rewrite_schema
from .unified import FunctionCallingMode, InternalRole, Role

logger = get_logger()

# Tool results in the public protocol are linked by id only; the internal
# protocol needs a function name
UNKNOWN_TOOL_NAME = "unknown_tool"


class RequestTransformer:
    """
    Maps public-protocol chat requests to internal-protocol request bodies.

    Stateless apart from the thinking settings; one instance can be shared
    across requests.
    """

    def __init__(self, thinking: Optional[ThinkingSettings] = None) -> None:
        self._thinking = thinking

    @property
    def thinking(self) -> ThinkingSettings:
        if self._thinking is None:
            return get_config().thinking
        return self._thinking

    def transform(
        self, request: Union[ChatCompletionRequest, dict[str, Any]]
    ) -> dict[str, Any]:
        """
        Transform a chat completion request into an Antigravity request.

        Args:
            request: Validated request, or a raw payload to validate

        Returns:
            Antigravity request body

        Raises:
            pydantic.ValidationError: If a raw payload is not a valid request
        """
        if not isinstance(request, ChatCompletionRequest):
            request = ChatCompletionRequest.model_validate(request)

        result: dict[str, Any] = {"contents": self._build_contents(request.messages)}

        # Only the first system message is honored
        system = next((m for m in request.messages if m.role == Role.SYSTEM.value), None)
        if system is not None:
            result["systemInstruction"] = {
                "parts": [{"text": self._extract_text(system.content)}]
            }

        if request.tools:
            tools = self._transform_tools(request.tools)
            if tools:
                result["tools"] = tools

        if request.tool_choice is not None:
            result["toolConfig"] = {
                "functionCallingConfig": self._convert_tool_choice(request.tool_choice)
            }

        result["generationConfig"] = self._build_generation_config(request)

        return result

    # =========================================================================
    # Helper Methods: Message Conversion
    # =========================================================================

    def _build_contents(self, messages: list[ChatMessage]) -> list[dict[str, Any]]:
        """Translate messages, merging adjacent same-role entries.

        The internal protocol rejects consecutive entries with the same role.
        """
        contents: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == Role.SYSTEM.value:
                continue
            content = self._transform_message(msg)
            if content is None:
                continue
            if contents and contents[-1]["role"] == content["role"]:
                contents[-1]["parts"].extend(content["parts"])
            else:
                contents.append(content)
        return contents

    def _transform_message(self, msg: ChatMessage) -> Optional[dict[str, Any]]:
        role = Role(msg.role)

        if role == Role.TOOL:
            # No tool-result role upstream: results travel in a user turn
            return {
                "role": InternalRole.USER.value,
                "parts": [self._function_response_part(msg)],
            }

        parts = self._text_parts(msg.content)

        if role == Role.ASSISTANT and msg.tool_calls:
            for call in msg.tool_calls:
                if call.type != "function":
                    continue
                parts.append(
                    {
                        "functionCall": {
                            "name": call.function.name,
                            "args": self._parse_arguments(call.function.arguments),
                        }
                    }
                )

        if not parts:
            return None

        return {"role": role.to_internal(), "parts": parts}

    @staticmethod
    def _text_parts(content: Any) -> list[dict[str, Any]]:
        if not content:
            return []
        if isinstance(content, str):
            return [{"text": content}]
        # Image parts are not forwarded
        return [{"text": part.text} for part in content if part.type == "text" and part.text]

    @staticmethod
    def _extract_text(content: Any) -> str:
        if not content:
            return ""
        if isinstance(content, str):
            return content
        return "\n".join(part.text or "" for part in content)

    @staticmethod
    def _parse_arguments(arguments: str) -> dict[str, Any]:
        try:
            args = json.loads(arguments)
        except (json.JSONDecodeError, TypeError):
            logger.debug(f"Unparseable tool-call arguments, sending {{}}: {arguments!r}")
            return {}
        if not isinstance(args, dict):
            logger.debug(f"Tool-call arguments are not an object, sending {{}}: {arguments!r}")
            return {}
        return args

    @staticmethod
    def _function_response_part(msg: ChatMessage) -> dict[str, Any]:
        content = msg.content
        response: dict[str, Any]
        if isinstance(content, str):
            try:
                parsed = json.loads(content)
            except json.JSONDecodeError:
                logger.debug("Tool result is not JSON, wrapping as content")
                parsed = None
            response = parsed if isinstance(parsed, dict) else {"content": content}
        elif isinstance(content, list):
            response = {"content": [part.model_dump(exclude_none=True) for part in content]}
        else:
            response = {"content": content}

        return {
            "functionResponse": {
                "name": msg.name or UNKNOWN_TOOL_NAME,
                "response": response,
            }
        }

    # =========================================================================
    # Helper Methods: Tools
    # =========================================================================

    @staticmethod
    def _transform_tools(tools: list[Tool]) -> list[dict[str, Any]]:
        declarations: list[dict[str, Any]] = []
        for tool in tools:
            if tool.type != "function" or tool.function is None:
                continue
            decl: dict[str, Any] = {"name": tool.function.name}
            if tool.function.description:
                decl["description"] = tool.function.description
            if tool.function.parameters is not None:
                decl["parameters"] = rewrite_schema(tool.function.parameters)
            declarations.append(decl)

        if not declarations:
            return []
        return [{"functionDeclarations": declarations}]

    @staticmethod
    def _convert_tool_choice(tool_choice: ToolChoice) -> dict[str, Any]:
        if isinstance(tool_choice, ToolChoiceFunction):
            return {
                "mode": FunctionCallingMode.ANY.value,
                "allowedFunctionNames": [tool_choice.function.name],
            }
        mode_map = {
            "auto": FunctionCallingMode.AUTO,
            "none": FunctionCallingMode.NONE,
            "required": FunctionCallingMode.ANY,
        }
        return {"mode": mode_map[tool_choice].value}

    # =========================================================================
    # Helper Methods: Generation Config
    # =========================================================================

    def _build_generation_config(self, request: ChatCompletionRequest) -> dict[str, Any]:
        gen_config: dict[str, Any] = {}
        if request.temperature is not None:
            gen_config["temperature"] = request.temperature
        max_tokens = request.output_token_limit()
        if max_tokens is not None:
            gen_config["maxOutputTokens"] = max_tokens
        if request.top_p is not None:
            gen_config["topP"] = request.top_p
        stop_sequences = request.stop_sequences()
        if stop_sequences:
            gen_config["stopSequences"] = stop_sequences
        gen_config["candidateCount"] = 1

        return apply_thinking_config(request.model, gen_config, self.thinking)


def transform_request(
    request: Union[ChatCompletionRequest, dict[str, Any]],
    thinking: Optional[ThinkingSettings] = None,
) -> dict[str, Any]:
    """Transform a chat completion request with a one-off transformer."""
    return RequestTransformer(thinking).transform(request)
