from slowapi import Limiter
from slowapi.util import get_remote_address

from . import config

limiter = Limiter(key_func=get_remote_address)


def rate_limit(limit: str):
    if config.TESTING:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)
