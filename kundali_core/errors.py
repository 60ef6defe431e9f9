"""Error taxonomy for chart generation.

User-correctable input problems (``IncompleteBirthDetails`` and the
configuration errors) are separated from internal normalization failures
(``InvalidInstant``, ``InvalidLongitude``) so the application layer can decide
what is safe to show to the user.
"""
from __future__ import annotations

from typing import Optional


class KundaliError(Exception):
    """Base class for every error raised by kundali_core."""

    user_correctable: bool = False


class IncompleteBirthDetails(KundaliError):
    user_correctable = True

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnsupportedAyanamsa(KundaliError):
    user_correctable = True


class UnsupportedHouseSystem(KundaliError):
    user_correctable = True


class UnsupportedDivision(KundaliError):
    user_correctable = True

    def __init__(self, code: str, supported: tuple[str, ...] = ()):
        msg = f"Unsupported divisional chart: {code!r}"
        if supported:
            msg += f". Supported: {', '.join(supported)}"
        super().__init__(msg)
        self.code = code


class InvalidInstant(KundaliError):
    """The birth instant could not be normalized to UTC / Julian Day."""


class InvalidLongitude(KundaliError):
    """A longitude was not a finite number after normalization."""


class GenerationFailed(KundaliError):
    """A pipeline stage failed; ``stage`` names it and ``cause`` holds the original error."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Chart generation failed at stage '{stage}': {cause}")
        self.stage = stage
        self.cause = cause

    @property
    def user_correctable(self) -> bool:  # type: ignore[override]
        return bool(getattr(self.cause, "user_correctable", False))
