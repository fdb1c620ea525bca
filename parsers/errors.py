"""
Failure taxonomy for a single adapter attempt.

These never leave ``BaseParser.query``: they are logged, retried per the
adapter's policy and finally folded into a ``Failure`` outcome.
"""
from __future__ import annotations


class SourceError(Exception):
    """Base class for a failed provider attempt."""


class TransportError(SourceError):
    """Network error, timeout, non-2xx status or undecodable body."""


class ApplicationError(SourceError):
    """Well-formed response that carries an embedded error status."""
