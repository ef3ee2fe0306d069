from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from bookstore.config import settings
from bookstore.errors import ConflictError


def conflict_retry():
    """Retry a whole unit of work once more when a concurrent write got in the way."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(settings.CHECKOUT_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(ConflictError),
    )
