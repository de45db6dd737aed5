"""
API v1 endpoints
"""

from authflow.api.v1.endpoints import auth, two_factor

__all__ = ["auth", "two_factor"]
