from .session import Database, transactional

__all__ = ["Database", "transactional"]
