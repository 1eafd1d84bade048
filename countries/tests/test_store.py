"""
Tests for the country store: upsert identity, lookups, listing and status.
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from countries.exceptions import CountryNotFound
from countries.models import Country
from countries.store import CountrySnapshot, CountryStore


def snapshot(name, **overrides):
    values = dict(
        name=name,
        capital=None,
        region=None,
        population=1000,
        currency_code="TST",
        exchange_rate=1.0,
        estimated_gdp=1_500_000.0,
        flag_url=None,
    )
    values.update(overrides)
    return CountrySnapshot(**values)


class UpsertTest(TestCase):
    """Test idempotent upsert-by-name."""

    def setUp(self):
        self.store = CountryStore()
        self.now = timezone.now()

    def test_insert_then_update_in_place(self):
        self.store.upsert(snapshot("France", population=100), self.now)
        self.store.upsert(snapshot("France", population=200, capital="Paris"), self.now + timedelta(seconds=1))

        self.assertEqual(Country.objects.filter(name__iexact="France").count(), 1)
        country = Country.objects.get(name="France")
        self.assertEqual(country.population, 200)
        self.assertEqual(country.capital, "Paris")
        self.assertEqual(country.last_refreshed_at, self.now + timedelta(seconds=1))

    def test_case_variants_collapse_to_latest_casing(self):
        with self.store.transaction() as tx:
            tx.upsert(snapshot("ivory coast"), self.now)
            tx.upsert(snapshot("Ivory Coast"), self.now)
            tx.upsert(snapshot("Ghana"), self.now)
            tx.upsert(snapshot("GHANA"), self.now)

        self.assertEqual(Country.objects.count(), 2)
        self.assertEqual(Country.objects.get(name__iexact="ghana").name, "GHANA")
        self.assertEqual(tx.created, 2)
        self.assertEqual(tx.updated, 2)

    def test_refresh_timestamp_never_moves_backwards(self):
        self.store.upsert(snapshot("Kenya"), self.now)
        self.store.upsert(snapshot("Kenya", population=5), self.now - timedelta(hours=1))

        country = Country.objects.get(name="Kenya")
        self.assertEqual(country.population, 5)
        self.assertEqual(country.last_refreshed_at, self.now)

    def test_failed_transaction_rolls_back_everything(self):
        self.store.upsert(snapshot("Chad", population=1), self.now)

        with self.assertRaises(RuntimeError):
            with self.store.transaction() as tx:
                tx.upsert(snapshot("Chad", population=2), self.now)
                tx.upsert(snapshot("Mali"), self.now)
                raise RuntimeError("boom")

        self.assertEqual(Country.objects.get(name="Chad").population, 1)
        self.assertFalse(Country.objects.filter(name="Mali").exists())


class LookupTest(TestCase):

    def setUp(self):
        self.store = CountryStore()
        self.store.upsert(snapshot("France", region="Europe"), timezone.now())

    def test_find_by_name_ignores_case(self):
        found = {self.store.find_by_name(n).pk for n in ("france", "FRANCE", "France")}
        self.assertEqual(len(found), 1)

    def test_find_missing_returns_none(self):
        self.assertIsNone(self.store.find_by_name("Nowhere"))

    def test_get_by_name_raises_not_found(self):
        with self.assertRaises(CountryNotFound) as ctx:
            self.store.get_by_name("Nowhere")
        self.assertEqual(str(ctx.exception), "Country not found")

    def test_delete_by_name(self):
        self.assertFalse(self.store.delete_by_name("Nowhere"))
        self.store.create({"name": "Nowhere", "population": 1, "currency_code": "NWH"})
        self.assertTrue(self.store.delete_by_name("NOWHERE"))
        self.assertFalse(self.store.delete_by_name("Nowhere"))
        self.assertEqual(self.store.count(), 1)


class ListTest(TestCase):
    """Test filters and sorting."""

    def setUp(self):
        self.store = CountryStore()
        now = timezone.now()
        rows = [
            snapshot("Nigeria", region="Africa", currency_code="NGN", estimated_gdp=50.0),
            snapshot("Egypt", region="Africa", currency_code="EGP", estimated_gdp=None, exchange_rate=None),
            snapshot("Ghana", region="Africa", currency_code="GHS", estimated_gdp=80.0),
            snapshot("Benin", region="Africa", currency_code="XOF", estimated_gdp=10.0),
            snapshot("Senegal", region="Africa", currency_code="XOF", estimated_gdp=None, exchange_rate=None),
            snapshot("France", region="Europe", currency_code="EUR", estimated_gdp=900.0),
            snapshot("Bouvet Island", region="Antarctic", currency_code=None, estimated_gdp=0.0),
        ]
        with self.store.transaction() as tx:
            for row in rows:
                tx.upsert(row, now)

    def test_default_sort_is_name_ascending(self):
        names = [c.name for c in self.store.list()]
        self.assertEqual(names, sorted(names))

    def test_unknown_sort_falls_back_to_name(self):
        names = [c.name for c in self.store.list(sort="population_asc")]
        self.assertEqual(names, sorted(names))

    def test_region_filter_with_gdp_desc(self):
        countries = self.store.list(region="Africa", sort="gdp_desc")
        self.assertTrue(all(c.region == "Africa" for c in countries))
        self.assertEqual(
            [c.name for c in countries],
            ["Ghana", "Nigeria", "Benin", "Egypt", "Senegal"],
        )

    def test_currency_filter(self):
        names = [c.name for c in self.store.list(currency_code="XOF")]
        self.assertEqual(names, ["Benin", "Senegal"])

    def test_filters_are_exact(self):
        self.assertEqual(self.store.list(region="africa"), [])

    def test_top_by_gdp_skips_nulls(self):
        top = self.store.top_by_gdp(5)
        self.assertEqual([c.name for c in top], ["France", "Ghana", "Nigeria", "Benin", "Bouvet Island"])


class NameOrderTest(TestCase):
    """Default listing uses ordinal name order, uppercase before lowercase."""

    def test_mixed_case_names(self):
        store = CountryStore()
        with store.transaction() as tx:
            for name in ("banana", "Apple", "cherry", "Zed"):
                tx.upsert(snapshot(name), timezone.now())

        self.assertEqual([c.name for c in store.list()], ["Apple", "Zed", "banana", "cherry"])

    def test_mixed_case_names_with_filter(self):
        store = CountryStore()
        with store.transaction() as tx:
            for name in ("eswatini", "Chad", "angola", "Benin"):
                tx.upsert(snapshot(name, region="Africa"), timezone.now())
            tx.upsert(snapshot("Austria", region="Europe"), timezone.now())

        names = [c.name for c in store.list(region="Africa", sort="name_asc")]
        self.assertEqual(names, ["Benin", "Chad", "angola", "eswatini"])


class StatusTest(TestCase):

    def test_empty_store(self):
        status = CountryStore().status()
        self.assertEqual(status.total_countries, 0)
        self.assertIsNone(status.last_refreshed_at)

    def test_latest_refresh_across_rows(self):
        store = CountryStore()
        now = timezone.now()
        store.upsert(snapshot("A"), now - timedelta(days=1))
        store.upsert(snapshot("B"), now)

        status = store.status()
        self.assertEqual(status.total_countries, 2)
        self.assertEqual(status.last_refreshed_at, now)
