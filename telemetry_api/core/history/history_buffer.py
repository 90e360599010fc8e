"""Historial acotado de lecturas recientes, ordenado por hora de ingesta."""

from __future__ import annotations

import threading
from typing import List, Optional, Tuple

from ..domain.reading import Reading

HistorySnapshot = Tuple[Reading, ...]


class HistoryBuffer:
    """Buffer acotado de lecturas recientes, ordenado por `observed_at`.

    - Como mucho `capacity` lecturas; al desbordar se descartan las más viejas.
    - Reordena tras cada append (tolera entrega ligeramente desordenada);
      el sort es estable, así que los empates conservan el orden de inserción.
    - Los snapshots son tuplas inmutables: nunca reflejan cambios posteriores.

    Un solo escritor (la máquina de estados); lectores concurrentes vía snapshot.
    """

    def __init__(self, capacity: int = 10) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = int(capacity)
        self._items: List[Reading] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, reading: Reading) -> HistorySnapshot:
        """Añade una lectura y devuelve el snapshot resultante."""
        with self._lock:
            self._items.append(reading)
            self._items.sort(key=lambda r: r.observed_at)
            if len(self._items) > self._capacity:
                del self._items[: len(self._items) - self._capacity]
            return tuple(self._items)

    def snapshot(self) -> HistorySnapshot:
        with self._lock:
            return tuple(self._items)

    def latest(self) -> Optional[Reading]:
        """Lectura más reciente por timestamp (no necesariamente la última recibida)."""
        with self._lock:
            return self._items[-1] if self._items else None

    def reset(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
