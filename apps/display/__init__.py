from .broadcast import Broadcaster, TICKET_CALLED
from .routes import router

__all__ = ["Broadcaster", "TICKET_CALLED", "router"]
