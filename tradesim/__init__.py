"""Simulated order-book exchange with an HTTP and event-stream interface."""

__version__ = "0.1.0"