"""
CryptoScan Services

Service layer containing all business logic.
Each service has a defined interface (contract) and implementation.
"""

from cryptoscan.services.base import BaseService, ExternalAPIError, ServiceError, ValidationError

__all__ = ["BaseService", "ServiceError", "ValidationError", "ExternalAPIError"]
