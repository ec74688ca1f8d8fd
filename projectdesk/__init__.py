"""ProjectDesk - client project requests, quotations and delivery tracking."""

__version__ = "1.0.0"
