"""
Fare Calculator.

Formula
-------
base_fare  = base_fare_per_km x distance
total_fare = base_fare + loading_charge

Distance defaults to ``DEFAULT_DISTANCE_KM`` when the client does not supply
one. The same function prices a vehicle at suggestion time and at booking
time; a signed quote token carries the suggestion-time result forward so the
two can never disagree.
"""

from dataclasses import dataclass, asdict
from datetime import timedelta
from typing import Any, Dict, Optional

from loadmate.app.core.config import settings
from loadmate.app.core.jwt import (
    FARE_QUOTE_TOKEN_TYPE,
    create_signed_token,
    decode_signed_token,
)

DEFAULT_DISTANCE_KM = settings.default_distance_km


@dataclass(frozen=True)
class FareBreakdown:
    distance: float
    base_fare: float
    loading_charges: float
    total_fare: float


@dataclass(frozen=True)
class FareQuote:
    """A priced offer for one vehicle over one distance."""
    vehicle_id: int
    fare: FareBreakdown

    def to_claims(self) -> Dict[str, Any]:
        return {"vehicle_id": self.vehicle_id, **asdict(self.fare)}


def calculate_fare(
    base_fare_per_km: float,
    loading_charge: Optional[float] = None,
    distance: Optional[float] = None,
) -> FareBreakdown:
    """Price a trip. A missing loading charge counts as 0."""
    if distance is None:
        distance = DEFAULT_DISTANCE_KM
    base_fare = base_fare_per_km * distance
    loading_charges = loading_charge or 0
    return FareBreakdown(
        distance=distance,
        base_fare=base_fare,
        loading_charges=loading_charges,
        total_fare=base_fare + loading_charges,
    )


def quote_for_vehicle(vehicle, distance: Optional[float] = None) -> FareQuote:
    """Build a quote from a vehicle's rate fields."""
    return FareQuote(
        vehicle_id=vehicle.id,
        fare=calculate_fare(vehicle.base_fare_per_km, vehicle.loading_charge, distance),
    )


def encode_quote(quote: FareQuote) -> str:
    """Sign a quote so it can be handed back at booking time."""
    return create_signed_token(
        quote.to_claims(),
        FARE_QUOTE_TOKEN_TYPE,
        timedelta(minutes=settings.quote_expire_minutes),
    )


def decode_quote(token: str) -> Optional[FareQuote]:
    """Return the quote in ``token``, or None if it is forged, expired or malformed."""
    claims = decode_signed_token(token, FARE_QUOTE_TOKEN_TYPE)
    if claims is None:
        return None
    try:
        return FareQuote(
            vehicle_id=int(claims["vehicle_id"]),
            fare=FareBreakdown(
                distance=float(claims["distance"]),
                base_fare=float(claims["base_fare"]),
                loading_charges=float(claims["loading_charges"]),
                total_fare=float(claims["total_fare"]),
            ),
        )
    except (KeyError, TypeError, ValueError):
        return None
