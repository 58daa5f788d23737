"""
Error types shared by the content gateway, identity layer and route guards
"""
from typing import Any, Dict, Optional


class ContentOrganiserError(Exception):
    """Base class for application errors"""

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}


class GatewayError(ContentOrganiserError):
    """Storage or transport failure while talking to the backing store"""


class ContentItemNotFoundError(ContentOrganiserError):
    """Referenced content item does not exist"""

    def __init__(self, item_id: str):
        super().__init__(f"Content item '{item_id}' not found", {"item_id": item_id})
        self.item_id = item_id


class ContentValidationError(ContentOrganiserError):
    """Create/update payload was rejected"""


class AuthenticationError(ContentOrganiserError):
    """Sign-in or sign-up was refused"""


class ProviderScopeError(RuntimeError):
    """Resolver or store state consumed outside the scope that owns it"""


class GuardRedirect(Exception):
    """Raised by page guards; converted into a redirect response"""

    def __init__(self, location: str, reason: Optional[str] = None):
        super().__init__(f"redirect to {location}")
        self.location = location
        self.reason = reason
