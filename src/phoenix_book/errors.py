"""Exceptions raised by the Phoenix book SDK."""


class PhoenixBookError(Exception):
    """Base exception for Phoenix book SDK errors."""
    pass


class DecodeError(PhoenixBookError):
    """Raised when an account buffer cannot be decoded."""
    pass


class CorruptionError(DecodeError):
    """Raised when decoded state is internally inconsistent."""
    pass


class FreeListCycleError(CorruptionError):
    """Raised when an arena free list does not terminate within the arena."""
    pass


class SizeMismatchError(CorruptionError):
    """Raised when computed sub-buffer extents exceed the input buffer."""
    pass


class InvalidScaleError(CorruptionError):
    """Raised when a market scale constant used as a divisor is zero."""
    pass


class MarketVersionError(DecodeError):
    """Raised when a market header does not match the supported layout."""
    pass


class DataUnavailableError(PhoenixBookError):
    """Raised when the RPC returns fewer account buffers than requested."""
    pass


class MarketNotFoundError(PhoenixBookError):
    """Raised when a market address has no loaded snapshot."""
    pass


class RpcError(PhoenixBookError):
    """Raised when an RPC or config request fails."""
    pass


class RateLimitError(RpcError):
    """Raised when the RPC rate limit is exceeded."""
    pass
