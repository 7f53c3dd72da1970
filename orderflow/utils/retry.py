# orderflow/utils/retry.py
from tenacity import (
    Retrying,
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)
import requests
import redis


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def lock_wait(timeout: float):
    # keeps polling while the call returns False; gives up with False
    return Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(0.1),
        retry=retry_if_result(lambda acquired: not acquired),
        retry_error_callback=lambda state: False,
    )


def regenerate_on_conflict(attempts: int, conflict: type[Exception]):
    return Retrying(
        reraise=True,
        stop=stop_after_attempt(attempts),
        retry=retry_if_exception_type(conflict),
    )
