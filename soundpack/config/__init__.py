from .settings import AppSettings

__all__ = ["AppSettings"]
