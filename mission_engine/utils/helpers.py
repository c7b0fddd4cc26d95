"""
General helper functions and utilities
"""

import time
import asyncio
import logging
import secrets
import string
from typing import Tuple

logger = logging.getLogger(__name__)


# Time Utilities
def get_current_timestamp() -> float:
    """Get current timestamp in seconds"""
    return time.time()


def generate_id(prefix: str = "", length: int = 8) -> str:
    """Generate unique ID string"""
    alphabet = string.ascii_letters + string.digits
    random_part = ''.join(secrets.choice(alphabet) for _ in range(length))

    if prefix:
        return f"{prefix}_{random_part}"
    else:
        return random_part


# Async Utilities
async def retry_async(func, max_retries: int = 3, delay: float = 1.0,
                      backoff_factor: float = 2.0, exceptions: Tuple = (Exception,)):
    """Retry async function with exponential backoff"""
    last_exception = None

    for attempt in range(max_retries + 1):
        try:
            return await func()
        except exceptions as e:
            last_exception = e
            if attempt < max_retries:
                wait_time = delay * (backoff_factor ** attempt)
                logger.warning(f"Attempt {attempt + 1} failed, retrying in {wait_time}s: {e}")
                await asyncio.sleep(wait_time)
            else:
                logger.error(f"All {max_retries + 1} attempts failed")

    raise last_exception


# Validation Utilities
def clamp(value: float, min_value: float, max_value: float) -> float:
    """Clamp value between min and max"""
    return max(min_value, min(value, max_value))
