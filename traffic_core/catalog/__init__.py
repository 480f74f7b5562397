"""Endpoint catalog module."""

from .catalog import DEFAULT_ENDPOINTS, DEFAULT_TENANTS, EndpointCatalog, IEndpointCatalog

__all__ = ["DEFAULT_ENDPOINTS", "DEFAULT_TENANTS", "EndpointCatalog", "IEndpointCatalog"]
