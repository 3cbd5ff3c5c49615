"""
Pydantic schemas for request/response models of the HTTP API.
"""

from pydantic import BaseModel


class ShortenRequest(BaseModel):
    """Payload of POST /api/shorten."""
    url: str


class ShortenResponse(BaseModel):
    result: str


class BatchRequestItem(BaseModel):
    """One element of the POST /api/shorten/batch payload."""
    correlation_id: str
    original_url: str


class BatchResponseItem(BaseModel):
    correlation_id: str
    short_url: str


class UserURL(BaseModel):
    """Listing entry returned by GET /api/user/urls."""
    short_url: str
    original_url: str
