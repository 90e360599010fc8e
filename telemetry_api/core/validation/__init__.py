"""Validation layer - Codec de payloads entrantes."""

from .payload_validator import PayloadCodec, TemperaturePayload, parse

__all__ = ["PayloadCodec", "TemperaturePayload", "parse"]
