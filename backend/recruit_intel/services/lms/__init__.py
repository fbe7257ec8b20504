from recruit_intel.services.lms.base import (
    LMSClient,
    LMSError,
    LMSConfigurationError,
    LMSRequestError,
    LMSDecodeError,
)
from recruit_intel.services.lms.canvas import CanvasClient

__all__ = [
    "LMSClient",
    "LMSError",
    "LMSConfigurationError",
    "LMSRequestError",
    "LMSDecodeError",
    "CanvasClient",
]
