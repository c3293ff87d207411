"""Orchestration module.

Wires the watcher, filter, dedup store, feed poster and publisher together.
"""

from herald.orchestration.herald import HeraldApp, create_poster

__all__ = ["HeraldApp", "create_poster"]
