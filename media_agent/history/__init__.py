from .edit_history import EditHistory, EmptyHistoryError

__all__ = ["EditHistory", "EmptyHistoryError"]
