"""
Bearer-token authentication.
"""

from .tokens import JWTAuthenticator, get_bearer_token, issue_access_token

__all__ = ["JWTAuthenticator", "get_bearer_token", "issue_access_token"]
