"""Backend API client."""

from insurance_recon.clients.recon_api import (
    AuthenticationError,
    NotFoundError,
    ReconAPIClient,
    ReconAPIError,
    extract_error_message,
)

__all__ = [
    "ReconAPIClient",
    "ReconAPIError",
    "AuthenticationError",
    "NotFoundError",
    "extract_error_message",
]
