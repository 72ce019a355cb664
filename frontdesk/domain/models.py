from __future__ import annotations

from dataclasses import dataclass

COTTAGES = (
    "Gonolek Cottage",
    "Fish Eagle Cottage",
    "Piapiac Cottage",
    "Sunbird Cottage",
    "Shoebill Cottage",
    "Little Eagle Cottage",
    "Wagtail Cottage",
)

COTTAGE_TYPES = ("SINGLE", "DOUBLE", "TWIN", "TRIPLE", "QUADRUPLE")


@dataclass(frozen=True)
class ApiConfig:
    """Where the lodge API lives and how this desk identifies itself to it."""

    api_base_url: str
    request_timeout_seconds: float
    device_id: str
