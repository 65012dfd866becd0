from functools import wraps
import asyncio
import threading

# один цикл событий на поток воркера
_thread_local = threading.local()


def _thread_loop() -> asyncio.AbstractEventLoop:
    loop = getattr(_thread_local, 'loop', None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
    return loop


def async_route(f):
    """Run an async view to completion on the worker thread's event loop"""
    @wraps(f)
    def wrapped(*args, **kwargs):
        # цикл не закрываем, он переиспользуется следующими запросами потока
        return _thread_loop().run_until_complete(f(*args, **kwargs))

    return wrapped
