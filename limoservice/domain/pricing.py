"""
Flat-rate Pricing Engine  (Strategy Pattern)
============================================

Rule
----
A trip is an **airport transfer** when one end (and only one end) mentions
an airport.  A location "mentions" an airport when its lowercase form
contains the airport keyword (``dfw``, ``dallas love field``).

* Airport transfer -> flat rate (default $85.00)
* Anything else    -> city ride (default $100.00)

Complexity: O(k) per quote, k = number of airport keywords.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .enums import ServiceType

DEFAULT_AIRPORT_KEYWORDS = ("dfw", "dallas love field")


def mentions(location: str, keyword: str) -> bool:
    return keyword.lower() in location.lower()


def is_airport_transfer(
    pickup: str, dropoff: str, keywords: Iterable[str] = DEFAULT_AIRPORT_KEYWORDS
) -> bool:
    """True when exactly one end of the trip mentions some airport."""
    return any(mentions(pickup, kw) != mentions(dropoff, kw) for kw in keywords)


def to_minor_units(amount: float) -> int:
    """Dollars -> cents, rounded half-up."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class FareQuote:
    service_type: ServiceType
    total_price: float
    flat_rate_amount: Optional[float] = None


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareStrategy(ABC):
    @abstractmethod
    def quote(self) -> FareQuote: ...


class AirportTransferFare(FareStrategy):
    def __init__(self, flat_rate: float = 85.0):
        self.flat_rate = flat_rate

    def quote(self) -> FareQuote:
        return FareQuote(
            service_type=ServiceType.AIRPORT_TRANSFER,
            total_price=self.flat_rate,
            flat_rate_amount=self.flat_rate,
        )


class CityRideFare(FareStrategy):
    def __init__(self, price: float = 100.0):
        self.price = price

    def quote(self) -> FareQuote:
        return FareQuote(service_type=ServiceType.CITY_RIDE, total_price=self.price)


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the booking service."""

    def __init__(
        self,
        airport_transfer_fare: float = 85.0,
        city_ride_fare: float = 100.0,
        airport_keywords: Iterable[str] = DEFAULT_AIRPORT_KEYWORDS,
    ):
        self.airport_transfer_fare = airport_transfer_fare
        self.city_ride_fare = city_ride_fare
        self.airport_keywords = tuple(airport_keywords)

    def strategy_for(self, pickup: str, dropoff: str) -> FareStrategy:
        if is_airport_transfer(pickup, dropoff, self.airport_keywords):
            return AirportTransferFare(self.airport_transfer_fare)
        return CityRideFare(self.city_ride_fare)

    def quote(self, pickup: str, dropoff: str) -> FareQuote:
        return self.strategy_for(pickup, dropoff).quote()
