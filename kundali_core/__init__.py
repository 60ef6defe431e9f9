from .errors import (
    GenerationFailed,
    IncompleteBirthDetails,
    InvalidInstant,
    InvalidLongitude,
    KundaliError,
    UnsupportedAyanamsa,
    UnsupportedDivision,
    UnsupportedHouseSystem,
)
from .kundali import active_dasha, divisional_chart, generate, validate_birth_details
from .models import BirthDetails, ChartSettings, KundaliData

__all__ = [
    "BirthDetails",
    "ChartSettings",
    "KundaliData",
    "generate",
    "validate_birth_details",
    "divisional_chart",
    "active_dasha",
    "KundaliError",
    "IncompleteBirthDetails",
    "UnsupportedAyanamsa",
    "UnsupportedHouseSystem",
    "UnsupportedDivision",
    "InvalidInstant",
    "InvalidLongitude",
    "GenerationFailed",
]
