from .me import MeSerializer, MeView

__all__ = ["MeSerializer", "MeView"]
