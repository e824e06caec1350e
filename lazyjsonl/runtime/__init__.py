"""Public runtime entry points.

This package groups the interactive viewer bootstrap (`run_pager`) with the
terminal, key decoding, frame composition and config helpers it uses.
"""

from __future__ import annotations


def run_pager(*args, **kwargs):
    """Lazily import viewer entrypoint to avoid runtime bootstrap on import."""
    from .app import run_pager as _run_pager

    return _run_pager(*args, **kwargs)


__all__ = ["run_pager"]
