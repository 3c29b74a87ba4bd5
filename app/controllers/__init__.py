"""FastAPI routers acting as controllers in the MVC architecture."""

from . import events, speech

__all__ = ["events", "speech"]
