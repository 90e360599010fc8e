from .history_buffer import HistoryBuffer, HistorySnapshot

__all__ = ["HistoryBuffer", "HistorySnapshot"]
