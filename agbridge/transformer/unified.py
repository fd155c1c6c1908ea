# Shared Protocol Vocabulary
#
# Roles, finish reasons and id helpers used by both directions of the
# OpenAI <-> Antigravity translation.

import time
from enum import Enum
from typing import Callable, Optional


# Returns epoch seconds; injectable so ids and timestamps are deterministic in tests
Clock = Callable[[], float]


# =============================================================================
# Core Enums
# =============================================================================


class Role(str, Enum):
    """Public-protocol message role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    def to_internal(self) -> str:
        """Map to the internal protocol's two-role set."""
        if self is Role.ASSISTANT:
            return InternalRole.MODEL.value
        return InternalRole.USER.value


class InternalRole(str, Enum):
    """Internal-protocol content role."""

    USER = "user"
    MODEL = "model"


class FunctionCallingMode(str, Enum):
    """Internal-protocol tool-choice mode."""

    AUTO = "AUTO"
    NONE = "NONE"
    ANY = "ANY"


# =============================================================================
# Finish Reasons
# =============================================================================


FINISH_REASON_MAP: dict[str, str] = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
    "OTHER": "stop",
}


def map_finish_reason(
    reason: Optional[str], default: Optional[str] = None
) -> Optional[str]:
    """Map an internal finish reason to its public-protocol value.

    The two response paths differ only in ``default``: single-shot
    responses fall back to "stop", streams fall back to None.
    """
    if not isinstance(reason, str) or not reason:
        return default
    return FINISH_REASON_MAP.get(reason, default)


# =============================================================================
# Identifiers
# =============================================================================


DONE_SENTINEL = "[DONE]"


def epoch_millis(clock: Clock = time.time) -> int:
    return int(clock() * 1000)


def epoch_seconds(clock: Clock = time.time) -> int:
    return int(clock())


def completion_id(clock: Clock = time.time) -> str:
    return f"chatcmpl-{epoch_millis(clock)}"


def tool_call_id(index: int, clock: Clock = time.time) -> str:
    return f"call_{epoch_millis(clock)}_{index}"
