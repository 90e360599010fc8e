"""Codec de payloads del feed de temperatura.

Formato esperado (un objeto JSON por mensaje):
    {"temperature": 7.5}

Campos adicionales se ignoran. El timestamp que traiga el payload NO se usa:
`observed_at` es siempre la hora de ingesta.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import from_json

from ..domain.reading import ParseResult, Reading, RejectReason

logger = logging.getLogger(__name__)

TEMPERATURE_FIELD = "temperature"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TemperaturePayload(BaseModel):
    """Schema de validación del campo de temperatura.

    Modo lax de pydantic: acepta números y strings numéricos ("7.5").
    Rechaza booleanos, null, NaN e infinitos.
    """

    model_config = ConfigDict(extra="ignore")

    temperature: float = Field(..., allow_inf_nan=False)

    @field_validator(TEMPERATURE_FIELD, mode="before")
    @classmethod
    def reject_non_numeric(cls, v: Any) -> Any:
        if v is None or isinstance(v, bool):
            raise ValueError(f"temperature is not numeric: {v!r}")
        if isinstance(v, str):
            return v.strip()
        return v


class PayloadCodec:
    """Parsea y valida un payload crudo en una `Reading`.

    Responsabilidades:
    - Decodificar JSON (orjson)
    - Verificar presencia de `temperature`
    - Coerción a float finito
    - Sellar la lectura con la hora de ingesta

    Sin efectos secundarios: los rechazos se devuelven, no se lanzan.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now

    def parse(self, raw: Union[bytes, str]) -> ParseResult:
        try:
            data = self._decode(raw)
        except (ValueError, TypeError) as e:
            return ParseResult.rejected(RejectReason.MALFORMED_PAYLOAD, f"Invalid JSON: {e}")

        if not isinstance(data, dict):
            return ParseResult.rejected(
                RejectReason.MALFORMED_PAYLOAD,
                f"Payload must be a JSON object, got {type(data).__name__}",
            )

        if TEMPERATURE_FIELD not in data:
            return ParseResult.rejected(
                RejectReason.MISSING_FIELD,
                f"Missing required field: {TEMPERATURE_FIELD}",
            )

        try:
            payload = TemperaturePayload.model_validate({TEMPERATURE_FIELD: data[TEMPERATURE_FIELD]})
        except ValidationError as e:
            return ParseResult.rejected(
                RejectReason.NOT_A_NUMBER,
                f"Invalid temperature {data[TEMPERATURE_FIELD]!r}: {e.errors()[0]['msg']}",
            )

        return ParseResult.ok(Reading(value=payload.temperature, observed_at=self._clock()))

    @staticmethod
    def _decode(raw: Union[bytes, str]) -> Any:
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            # orjson rechaza números fuera de rango de double (1e400);
            # pydantic_core los decodifica como ±inf y la validación los rechaza
            if "infinity" not in str(e):
                raise
            return from_json(raw, allow_inf_nan=True)


_default_codec = PayloadCodec()


def parse(raw: Union[bytes, str]) -> ParseResult:
    """Parsea un payload con el reloj de pared por defecto."""
    return _default_codec.parse(raw)
