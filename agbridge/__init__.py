"""OpenAI-compatible bridge for the Antigravity generative-model protocol"""

__version__ = "0.1.0"

from agbridge.transformer.pipeline import BridgePipeline, PreparedRequest

__all__ = ["BridgePipeline", "PreparedRequest", "__version__"]
