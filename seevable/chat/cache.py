import functools
import logging
import threading

LOGGER = logging.getLogger(__name__)

_CACHE = {}
_CACHE_LOCK = threading.RLock()


def _make_key(func, args, kwargs):
    # classmethods pass the class as the first arg; key on its name so
    # subclasses get their own instance
    key_args = tuple(arg.__qualname__ if isinstance(arg, type) else arg for arg in args)
    return (func.__module__, func.__qualname__, key_args, tuple(sorted(kwargs.items())))


def chat_cache(func):
    """
    Memoizes a factory call per (function, arguments). Used to hand out
    process-wide singletons like Config.config().
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        key = _make_key(func, args, kwargs)
        with _CACHE_LOCK:
            if key not in _CACHE:
                _CACHE[key] = func(*args, **kwargs)
                LOGGER.debug(f"Cached new value for {func.__qualname__}")
            return _CACHE[key]
    return wrapper


def chat_cache_clear():
    with _CACHE_LOCK:
        _CACHE.clear()
    LOGGER.debug("Cleared chat cache")
