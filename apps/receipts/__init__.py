from .store import PrintJobStore, render_receipt
from .routes import router

__all__ = ["PrintJobStore", "render_receipt", "router"]
