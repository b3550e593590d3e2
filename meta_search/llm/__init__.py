"""
LLM Infrastructure - oracle protocol and the Ollama client.
"""

from .client import Oracle, OllamaOracle, ModelConfig, MODELS, extract_json

__all__ = ["Oracle", "OllamaOracle", "ModelConfig", "MODELS", "extract_json"]
