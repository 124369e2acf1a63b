"""
Compliance Hub - Webhook & Integration Service

A FastAPI-based service that records compliance domain events, fans them
out to registered webhook endpoints with retry bookkeeping, and logs
inbound webhooks from external housing-management systems.
"""

__version__ = "0.1.0"
