"""Public package surface for mdsbrowser.

Exports ``main`` for programmatic CLI invocation.
The picker core lives in ``mdsbrowser.picker``; terminal plumbing in
``mdsbrowser.runtime``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
