import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import aiohttp
from django.conf import settings

from .exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

RateTable = Dict[str, float]


@dataclass(frozen=True)
class GatewayConfig:
    """HTTP client options for the two upstream feeds."""
    countries_url: str
    rates_url: str
    timeout: float = 15
    verify_ssl: bool = True
    headers: Dict[str, str] = field(default_factory=lambda: {"Accept": "application/json"})

    @classmethod
    def from_settings(cls):
        return cls(
            countries_url=settings.COUNTRIES_API_URL,
            rates_url=settings.RATES_API_URL,
            timeout=settings.EXTERNAL_TIMEOUT,
            verify_ssl=settings.EXTERNAL_VERIFY_SSL,
        )


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _population(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        population = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(population, 0)


@dataclass(frozen=True)
class RawCountry:
    """One entry of the country directory, with defaults already applied."""
    name: str
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = 0
    flag_url: Optional[str] = None
    currencies: Tuple[Optional[str], ...] = ()

    @property
    def currency_code(self) -> Optional[str]:
        # only the first declared currency counts
        return self.currencies[0] if self.currencies else None

    @classmethod
    def from_payload(cls, data) -> Optional["RawCountry"]:
        if not isinstance(data, dict):
            return None
        name = _optional_str(data.get("name"))
        if not name:
            return None

        currencies = data.get("currencies") or []
        codes = []
        if isinstance(currencies, list):
            for currency in currencies:
                code = currency.get("code") if isinstance(currency, dict) else None
                codes.append(_optional_str(code))

        return cls(
            name=name,
            capital=_optional_str(data.get("capital")),
            region=_optional_str(data.get("region")),
            population=_population(data.get("population")),
            flag_url=_optional_str(data.get("flag")),
            currencies=tuple(codes),
        )


def parse_countries(payload, source) -> List[RawCountry]:
    if not isinstance(payload, list):
        raise UpstreamUnavailable(source, "expected a list of countries")

    countries = []
    for entry in payload:
        country = RawCountry.from_payload(entry)
        if country is None:
            logger.warning("Skipping country entry without a name from %s", source)
            continue
        countries.append(country)
    return countries


def parse_rates(payload, source) -> RateTable:
    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        raise UpstreamUnavailable(source, "response has no 'rates' object")

    table = {}
    for code, value in rates.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        table[str(code)] = float(value)
    return table


# --- Async Fetchers --- #
async def fetch_json(session, url, timeout):
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
            if not 200 <= response.status < 300:
                raise UpstreamUnavailable(url, f"HTTP {response.status}")
            return await response.json(content_type=None)
    except asyncio.TimeoutError:
        raise UpstreamUnavailable(url, f"timed out after {timeout}s")
    except (aiohttp.ClientError, ValueError) as exc:
        raise UpstreamUnavailable(url, exc)


class CountryDataGateway:
    """Fetches the country directory and the exchange-rate table."""

    def __init__(self, config: GatewayConfig):
        self.config = config

    def _session(self):
        connector = aiohttp.TCPConnector(ssl=self.config.verify_ssl)
        return aiohttp.ClientSession(headers=self.config.headers, connector=connector)

    async def fetch(self) -> Tuple[List[RawCountry], RateTable]:
        """
        Fetch both feeds concurrently. Raises UpstreamUnavailable if either
        one fails; nothing is returned from a partial fetch.
        """
        config = self.config
        async with self._session() as session:
            countries_data, rates_data = await asyncio.gather(
                fetch_json(session, config.countries_url, config.timeout),
                fetch_json(session, config.rates_url, config.timeout),
                return_exceptions=True,
            )

        for result in (countries_data, rates_data):
            if isinstance(result, UpstreamUnavailable):
                logger.error("External API fetch failed (%s): %s", result.source, result.cause)
                raise result
            if isinstance(result, BaseException):
                raise result

        try:
            countries = parse_countries(countries_data, config.countries_url)
            rates = parse_rates(rates_data, config.rates_url)
        except UpstreamUnavailable as exc:
            logger.error("Malformed payload from %s: %s", exc.source, exc.cause)
            raise

        logger.info("Fetched %d countries and %d exchange rates", len(countries), len(rates))
        return countries, rates
