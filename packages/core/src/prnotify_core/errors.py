"""Exception taxonomy shared by the source adapter, detector and dispatchers."""

from __future__ import annotations


class PrNotifyError(Exception):
    """Base class for prnotify errors."""


class UpstreamUnavailableError(PrNotifyError):
    """Network, timeout or auth failure talking to GitHub or the chat sink.

    Recoverable: the affected thread (or cycle) is skipped and retried on
    the next tick.
    """


class DeliveryError(UpstreamUnavailableError):
    """A notification could not be delivered to the sink."""


class ConfigurationIncompleteError(PrNotifyError):
    """Required settings are missing. Fatal at startup only."""
