"""Identidad de sesión MQTT (client id)."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

DEFAULT_PREFIX = "fridge-app"


def generate_client_id(prefix: str = DEFAULT_PREFIX, rng: Optional[random.Random] = None) -> str:
    """Genera `<prefix>-<8 hex>`. Suficiente contra colisiones, no criptográfico."""
    source = rng if rng is not None else random
    return f"{prefix}-{source.getrandbits(32):08x}"


@dataclass(frozen=True)
class SessionIdentity:
    """Client id generado una vez y reutilizado en todas las reconexiones."""
    client_id: str

    @classmethod
    def generate(cls, prefix: str = DEFAULT_PREFIX, rng: Optional[random.Random] = None) -> "SessionIdentity":
        return cls(client_id=generate_client_id(prefix, rng))

    def __str__(self) -> str:
        return self.client_id
