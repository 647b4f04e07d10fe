import asyncio
import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, Tuple, Type, TypeVar

from pydantic import TypeAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Callable)


# Features:
# Cache lives on the owning instance (self.cache), so every provider sharing a cache shares hits
# Keys are "<prefix>_<arg1>_<arg2>..." over the bound arguments, so positional and keyword calls share a key
# Only successful results are cached, failures raise before reaching the cache
def with_cache(key_prefix: str, adapter: TypeAdapter):
    """Serve results from the instance's two-tier cache, storing them as JSON-ready data"""

    def decorator(func: T) -> T:
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(self, *args, **kwargs) -> Any:
            bound = signature.bind(self, *args, **kwargs)
            bound.apply_defaults()
            key_args = list(bound.arguments.values())[1:]
            cache_key = "_".join([key_prefix, *(str(arg) for arg in key_args)])

            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {func.__name__} with key {cache_key}")
                return adapter.validate_python(cached)

            logger.debug(f"Cache miss for {func.__name__} with key {cache_key}")
            result = await func(self, *args, **kwargs)

            self.cache.set(cache_key, adapter.dump_python(result, mode="json", by_alias=True))
            return result

        return wrapper

    return decorator


def with_retry(max_retries: int = 3, delay: float = 1.0, retry_on: Tuple[Type[BaseException], ...] = (Exception,)):
    """Retry function execution on failure, raising the last error once attempts run out"""

    def decorator(func: T) -> T:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            last_error = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    last_error = e
                    logger.warning(f"Attempt {attempt + 1}/{max_retries} for {func.__name__} failed: {e}")
                    if attempt < max_retries - 1:
                        delay_time = delay * (2**attempt)  # Exponential backoff
                        logger.info(f"Waiting {delay_time}s before retrying {func.__name__}")
                        await asyncio.sleep(delay_time)

            logger.error(f"All retries failed for {func.__name__}: {last_error}")
            raise last_error

        return wrapper

    return decorator


def monitor_execution():
    """Monitor function execution time and status"""

    def decorator(func: T) -> T:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            start_time = time.monotonic()
            try:
                result = await func(*args, **kwargs)
                logger.info(f"{func.__name__} executed successfully in {time.monotonic() - start_time:.2f}s")
                return result
            except Exception as e:
                logger.error(f"{func.__name__} failed after {time.monotonic() - start_time:.2f}s: {e}")
                raise

        return wrapper

    return decorator
