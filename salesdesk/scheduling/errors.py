"""Exception types for the meeting scheduler.

A time phrase that cannot be understood is not an exception: the parser
returns None and the caller asks the user again.
"""


class SchedulingError(Exception):
    """Base class for scheduler failures."""


class ConfigurationError(SchedulingError):
    """Credentials or organizer identity are not configured."""


class AuthError(SchedulingError):
    """The identity provider rejected the client-credentials exchange."""


class ProviderUnavailable(SchedulingError):
    """A calendar provider call failed (network, timeout or HTTP error)."""


class InvalidMeetingRequest(SchedulingError, ValueError):
    """A meeting request is incomplete and must not reach the provider."""
