"""
Client modules for external service communication
"""

from .images import ImageSearchClient

__all__ = ["ImageSearchClient"]
