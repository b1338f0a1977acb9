"""HTTP binding (FastAPI) for the slot-sale order backend."""

__version__ = "1.0.0"
