"""
Cal.com Tool - Open source scheduling infrastructure.

List bookable meeting types and their open slots via the Cal.com API.
"""

from .calcom_tool import CalcomIntegration, register_tools
from .client import CalcomClient
from .service import AvailabilityService

__all__ = ["AvailabilityService", "CalcomClient", "CalcomIntegration", "register_tools"]
