from __future__ import annotations
import datetime as dt
from typing import List, Optional, Dict, Literal
from pydantic import BaseModel, Field, ConfigDict


# --------- Common ---------
class ErrorDetail(BaseModel):
    field: Optional[str] = None
    issue: Optional[str] = None


class ErrorEnvelope(BaseModel):
    code: str = Field(default="SERVER_ERROR")
    message: str
    details: Optional[List[ErrorDetail]] = None


class ErrorResponse(BaseModel):
    error: ErrorEnvelope


# --------- Inputs ---------
class BirthPayload(BaseModel):
    """Birth details as stored on the user profile.

    Fields are optional at the schema level so that an incomplete profile
    reaches chart validation and comes back as CHART_GENERATION_FAILED.
    """
    model_config = ConfigDict(json_schema_extra={
        "examples": [
            {
                "name": "Amit",
                "dateOfBirth": "1990-01-15",
                "timeOfBirth": "14:30",
                "placeOfBirth": "New Delhi, IN",
                "timeZone": "Asia/Kolkata",
                "latitude": 28.6139,
                "longitude": 77.2090,
            }
        ]
    })

    name: Optional[str] = Field(default=None, description="Full name of the person.", examples=["Amit"])
    dateOfBirth: Optional[str] = Field(default=None, description="Birth date in ISO format YYYY-MM-DD.", examples=["1990-01-15"])
    timeOfBirth: Optional[str] = Field(default=None, description="Local birth time in 24h format HH:MM or HH:MM:SS.", examples=["14:30"])
    placeOfBirth: Optional[str] = Field(default=None, description="Human-readable place name (city, country).", examples=["New Delhi, IN"])
    timeZone: Optional[str] = Field(default=None, description="IANA timezone for the place of birth.", examples=["Asia/Kolkata"])
    latitude: Optional[float] = Field(default=None, description="Latitude in decimal degrees (north positive).", examples=[28.6139])
    longitude: Optional[float] = Field(default=None, description="Longitude in decimal degrees (east positive).", examples=[77.2090])


class ChartOptions(BaseModel):
    """Overrides for the server's chart defaults; omitted fields use the defaults."""
    ayanamsa: Optional[str] = Field(default=None, description="Sidereal reference, e.g. Lahiri, Raman, Krishnamurti.", examples=["Lahiri"])
    houseSystem: Optional[Literal["WHOLE_SIGN", "EQUAL", "PLACIDUS"]] = Field(default=None, description="House system.")
    nodeType: Optional[Literal["mean", "true"]] = Field(default=None, description="Lunar node used for Rahu/Ketu.")
    dashaDepth: Optional[int] = Field(default=None, ge=1, le=3, description="1 = Mahadasha, 2 = +Antardasha, 3 = +Pratyantardasha.")
    divisions: Optional[List[str]] = Field(default=None, description="Divisional charts to include, e.g. ['D9', 'D10'].", examples=[["D9", "D10"]])


class KundaliRequest(BaseModel):
    model_config = ConfigDict(json_schema_extra={
        "examples": [
            {
                "birth": {
                    "name": "Amit", "dateOfBirth": "1990-01-15", "timeOfBirth": "14:30",
                    "placeOfBirth": "New Delhi, IN", "timeZone": "Asia/Kolkata",
                    "latitude": 28.6139, "longitude": 77.2090,
                },
                "options": {"ayanamsa": "Lahiri", "divisions": ["D9", "D10"]},
            }
        ]
    })

    birth: BirthPayload
    options: Optional[ChartOptions] = None


class ActiveDashaRequest(KundaliRequest):
    at: Optional[dt.datetime] = Field(default=None, description="Instant to evaluate (timezone-aware ISO 8601); defaults to now.")


# --------- Outputs ---------
class PlanetOut(BaseModel):
    planetName: str
    longitude: float
    latitude: float
    speed: float
    sign: int
    signName: str
    degreeInSign: float
    nakshatra: int
    nakshatraName: str
    nakshatraLord: str
    degreesInNakshatra: float
    pada: int
    houseNumber: int
    retrograde: bool


class HouseOut(BaseModel):
    houseNumber: int
    sign: int
    signName: str
    cuspLongitude: float
    occupants: List[str] = Field(default_factory=list)


class LagnaOut(BaseModel):
    longitude: float
    sign: int
    signName: str
    degreeInSign: float
    nakshatra: int
    nakshatraName: str
    pada: int


class YogaOut(BaseModel):
    name: str
    planets: List[str]
    strength: float = Field(..., ge=0, le=100)
    meaning: str


class DashaPeriodOut(BaseModel):
    lord: str
    level: int
    levelName: str
    start: dt.datetime
    end: dt.datetime
    years: float
    subPeriods: List[DashaPeriodOut] = Field(default_factory=list)


class DivisionalPlacementOut(BaseModel):
    planetName: str
    sign: int
    signName: str
    houseNumber: int
    degreeInSign: float


class DivisionalChartOut(BaseModel):
    code: str
    name: str
    lagnaSign: int
    lagnaSignName: str
    placements: List[DivisionalPlacementOut]


class ChartSettingsOut(BaseModel):
    ayanamsa: str
    houseSystem: str
    nodeType: str
    dashaDepth: int
    divisions: List[str]


class KundaliChartData(BaseModel):
    birth: BirthPayload
    settings: ChartSettingsOut
    birthUtc: dt.datetime
    julianDay: float
    ayanamsa: float
    localSiderealTime: float = Field(..., description="Local sidereal time in hours.")
    lagna: LagnaOut
    planets: List[PlanetOut]
    houses: List[HouseOut]
    yogas: List[YogaOut]
    dasha: List[DashaPeriodOut]
    divisionalCharts: Dict[str, DivisionalChartOut] = Field(default_factory=dict)
    generatedAt: Optional[dt.datetime] = None


class KundaliOut(BaseModel):
    data: KundaliChartData
    cached: bool = False


class DivisionalOut(BaseModel):
    data: DivisionalChartOut


class ActiveDashaData(BaseModel):
    at: dt.datetime
    mahadasha: Optional[DashaPeriodOut] = None
    antardasha: Optional[DashaPeriodOut] = None
    pratyantardasha: Optional[DashaPeriodOut] = None


class ActiveDashaOut(BaseModel):
    data: ActiveDashaData


DashaPeriodOut.model_rebuild()
