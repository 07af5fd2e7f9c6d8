"""
Client side: fetch resources from onion services.
"""

from .fetch import (
    FetchOrchestrator,
    FetchTarget,
    normalize_host,
    parse_target,
    resolve_host,
    resolve_targets,
)

__all__ = [
    "FetchOrchestrator",
    "FetchTarget",
    "normalize_host",
    "parse_target",
    "resolve_host",
    "resolve_targets",
]
