import logging
from contextlib import contextmanager
from operator import attrgetter
from typing import List, NamedTuple, Optional

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F, Max

from .exceptions import CountryNotFound
from .models import Country

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = [
    "name",
    "capital",
    "region",
    "population",
    "currency_code",
    "exchange_rate",
    "estimated_gdp",
    "flag_url",
]


class CountrySnapshot(NamedTuple):
    """Computed values for one country, ready to be written."""
    name: str
    capital: Optional[str]
    region: Optional[str]
    population: int
    currency_code: Optional[str]
    exchange_rate: Optional[float]
    estimated_gdp: Optional[float]
    flag_url: Optional[str]


class StoreStatus(NamedTuple):
    total_countries: int
    last_refreshed_at: Optional[object]


class StoreTransaction:
    """Handle for writes that must commit or roll back together."""

    def __init__(self, store):
        self.store = store
        self.created = 0
        self.updated = 0

    def upsert(self, snapshot: CountrySnapshot, refreshed_at) -> Country:
        manager = Country.objects.using(self.store.using)
        country = manager.select_for_update().filter(name__iexact=snapshot.name).first()

        if country is None:
            country = Country(last_refreshed_at=refreshed_at)
            self.created += 1
        else:
            self.updated += 1

        for name in SNAPSHOT_FIELDS:
            setattr(country, name, getattr(snapshot, name))
        # never moves backwards
        country.last_refreshed_at = max(country.last_refreshed_at or refreshed_at, refreshed_at)
        country.save(using=self.store.using)
        return country


class CountryStore:
    """All reads and writes of Country rows go through here."""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    @property
    def objects(self):
        return Country.objects.using(self.using)

    @contextmanager
    def transaction(self):
        """
        Open one atomic block. Everything written through the yielded
        handle is rolled back if the block exits with an exception.
        """
        with transaction.atomic(using=self.using):
            yield StoreTransaction(self)

    def upsert(self, snapshot: CountrySnapshot, refreshed_at) -> Country:
        with self.transaction() as tx:
            return tx.upsert(snapshot, refreshed_at)

    def create(self, data) -> Country:
        with transaction.atomic(using=self.using):
            return self.objects.create(**data)

    def find_by_name(self, name) -> Optional[Country]:
        return self.objects.filter(name__iexact=name).first()

    def get_by_name(self, name) -> Country:
        country = self.find_by_name(name)
        if country is None:
            raise CountryNotFound()
        return country

    def delete_by_name(self, name) -> bool:
        deleted, _ = self.objects.filter(name__iexact=name).delete()
        if deleted:
            logger.info("Deleted country %s", name)
        return deleted > 0

    def list(self, region=None, currency_code=None, sort=None) -> List[Country]:
        queryset = self.objects.all()
        if region:
            queryset = queryset.filter(region=region)
        if currency_code:
            queryset = queryset.filter(currency_code=currency_code)

        if sort == "gdp_desc":
            return list(queryset.order_by(F("estimated_gdp").desc(nulls_last=True), "name"))
        # ordinal (case-sensitive) name order whatever the database collation
        return sorted(queryset, key=attrgetter("name"))

    def status(self) -> StoreStatus:
        last = self.objects.aggregate(last=Max("last_refreshed_at"))["last"]
        return StoreStatus(total_countries=self.count(), last_refreshed_at=last)

    def count(self) -> int:
        return self.objects.count()

    def top_by_gdp(self, n) -> List[Country]:
        return list(
            self.objects.filter(estimated_gdp__isnull=False).order_by("-estimated_gdp", "name")[:n]
        )
