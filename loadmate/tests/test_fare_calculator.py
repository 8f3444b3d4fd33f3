"""
Unit tests for the fare calculator and signed fare quotes.
"""

from types import SimpleNamespace

import pytest
from jose import jwt

from loadmate.app.core.config import settings
from loadmate.app.core.jwt import create_access_token
from loadmate.app.domain.pricing.fare_calculator import (
    DEFAULT_DISTANCE_KM,
    calculate_fare,
    quote_for_vehicle,
    encode_quote,
    decode_quote,
)


def test_total_is_rate_times_distance_plus_loading():
    fare = calculate_fare(12, 200, 50)
    assert fare.base_fare == 600
    assert fare.loading_charges == 200
    assert fare.total_fare == 800
    assert fare.distance == 50


def test_distance_defaults_to_fifty_km():
    fare = calculate_fare(18, 300)
    assert DEFAULT_DISTANCE_KM == 50
    assert fare.distance == 50
    assert fare.total_fare == 18 * 50 + 300


@pytest.mark.parametrize("loading_charge", [None, 0])
def test_missing_loading_charge_counts_as_zero(loading_charge):
    fare = calculate_fare(10, loading_charge, 25)
    assert fare.loading_charges == 0
    assert fare.total_fare == 250


def test_fractional_distance():
    fare = calculate_fare(22, 400, 12.5)
    assert fare.base_fare == pytest.approx(275.0)
    assert fare.total_fare == pytest.approx(675.0)


def test_quote_token_carries_the_quote():
    vehicle = SimpleNamespace(id=7, base_fare_per_km=35, loading_charge=800)
    quote = quote_for_vehicle(vehicle, 120)

    decoded = decode_quote(encode_quote(quote))

    assert decoded == quote
    assert decoded.vehicle_id == 7
    assert decoded.fare.total_fare == 35 * 120 + 800


def test_tampered_quote_token_is_rejected():
    vehicle = SimpleNamespace(id=1, base_fare_per_km=12, loading_charge=200)
    token = encode_quote(quote_for_vehicle(vehicle))
    claims = jwt.get_unverified_claims(token)
    claims["total_fare"] = 1
    forged = jwt.encode(claims, "not-the-server-key", algorithm=settings.algorithm)

    assert decode_quote(forged) is None


def test_access_token_is_not_a_quote():
    token = create_access_token({"sub": "a@test.com", "user_id": 1, "role": "customer"})
    assert decode_quote(token) is None


def test_garbage_quote_token_is_rejected():
    assert decode_quote("not-a-jwt") is None
