"""
Browser adapters for the host page.

Playwright is imported lazily so the audit core and the tests do not need a
browser installation.
"""


def open_activity_page(*args, **kwargs):
    from .playwright_page import open_activity_page as _open

    return _open(*args, **kwargs)


__all__ = ["open_activity_page"]
