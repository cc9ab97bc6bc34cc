"""Generation service infrastructure package."""

from .http_generation_client import GenerationResponsePayload, HttpGenerationClient

__all__ = ["GenerationResponsePayload", "HttpGenerationClient"]
