"""Infrastructure layer: filesystem probes, HTTP, config store, processes.

This layer depends on stdlib and third-party libs (requests, pydantic).
It may use pure helpers from the domain layer, and must never import
from services, commands, or output.
"""
