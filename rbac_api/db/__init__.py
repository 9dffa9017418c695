from .session import DatabaseManager

__all__ = ["DatabaseManager"]
