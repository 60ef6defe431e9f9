from __future__ import annotations
from typing import Optional, Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Body, Path

from schemas import (
    KundaliRequest,
    KundaliOut,
    DivisionalOut,
    ActiveDashaRequest,
    ActiveDashaOut,
)
from services.kundali_services import compute_kundali, compute_divisional, compute_active_dasha
from kundali_core.divisional import SUPPORTED_DIVISIONS


def _require_api_headers(
    x_correlation_id: Annotated[Optional[str], Header(alias="X-Correlation-ID")] = None,
    x_transaction_id: Annotated[Optional[str], Header(alias="X-Transaction-ID")] = None,
    x_session_id: Annotated[Optional[str], Header(alias="X-Session-ID")] = None,
    x_app_id: Annotated[Optional[str], Header(alias="X-App-ID")] = None,
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> None:
    if not authorization or not str(authorization).strip():
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    missing = []
    if not x_correlation_id:
        missing.append("X-Correlation-ID")
    if not x_transaction_id:
        missing.append("X-Transaction-ID")
    if not x_session_id:
        missing.append("X-Session-ID")
    if not x_app_id:
        missing.append("X-App-ID")

    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required headers: {', '.join(missing)}")


def _user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-ID")] = None,
) -> Optional[str]:
    """Opaque user id keying the chart cache; absent means no caching."""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


router = APIRouter(prefix="/api", dependencies=[Depends(_require_api_headers)])

_SAMPLE_REQUEST = {
    "sample": {
        "summary": "New Delhi, 1990",
        "value": {
            "birth": {
                "name": "Amit",
                "dateOfBirth": "1990-01-15",
                "timeOfBirth": "14:30",
                "placeOfBirth": "New Delhi, IN",
                "timeZone": "Asia/Kolkata",
                "latitude": 28.6139,
                "longitude": 77.2090,
            },
            "options": {"ayanamsa": "Lahiri", "divisions": ["D9", "D10"]},
        },
    }
}


# --------------- Kundali -----------------
@router.post("/kundali/generate", response_model=KundaliOut, tags=["Kundali"], summary="Generate Kundali (planets, houses, lagna, yogas, dasha)")
def generate_kundali(
    payload: KundaliRequest = Body(..., openapi_examples=_SAMPLE_REQUEST),
    user_id: Optional[str] = Depends(_user_id),
) -> KundaliOut:
    return compute_kundali(payload, user_id)


@router.post("/kundali/divisional/{code}", response_model=DivisionalOut, tags=["Kundali"], summary="Divisional chart (D1..D60)")
def get_divisional_chart(
    code: str = Path(..., description=f"Divisional chart code, one of {', '.join(SUPPORTED_DIVISIONS)}.", examples=["D9"]),
    payload: KundaliRequest = Body(..., openapi_examples=_SAMPLE_REQUEST),
    user_id: Optional[str] = Depends(_user_id),
) -> DivisionalOut:
    return compute_divisional(payload, code, user_id)


@router.post("/kundali/dasha/active", response_model=ActiveDashaOut, tags=["Kundali"], summary="Active Vimshottari periods at a date")
def get_active_dasha(
    payload: ActiveDashaRequest = Body(
        ...,
        openapi_examples={
            "sample": {
                "summary": "Periods running on 2024-06-01",
                "value": {**_SAMPLE_REQUEST["sample"]["value"], "at": "2024-06-01T00:00:00Z"},
            }
        },
    ),
    user_id: Optional[str] = Depends(_user_id),
) -> ActiveDashaOut:
    return compute_active_dasha(payload, user_id)
