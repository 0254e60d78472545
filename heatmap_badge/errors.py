class HeatmapError(Exception):
    """Base class for failures surfaced to the HTTP layer."""


class ColorFormatError(HeatmapError, ValueError):
    """Raised when a base or background color token is not valid hex."""


class OriginError(HeatmapError):
    """Raised when GitHub answers with a non-2xx, non-304 status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"GitHub responded with {status_code}")
        self.status_code = status_code


class CacheConsistencyError(HeatmapError):
    """Raised when GitHub answers 304 but no cached page body exists."""
