from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone


class Country(models.Model):
    """Latest economic snapshot of a single country."""
    # unique ignoring case, see Meta.constraints
    name = models.CharField(max_length=255)
    capital = models.CharField(max_length=255, null=True, blank=True)
    region = models.CharField(max_length=100, null=True, blank=True)
    population = models.PositiveBigIntegerField(default=0)

    # null when the source country declares no currency
    currency_code = models.CharField(max_length=10, null=True, blank=True)
    # null when no rate could be resolved for currency_code
    exchange_rate = models.FloatField(null=True, blank=True)
    # null when unresolvable, 0 when the country has no currency at all
    estimated_gdp = models.FloatField(null=True, blank=True, db_index=True)

    flag_url = models.URLField(max_length=500, null=True, blank=True)
    last_refreshed_at = models.DateTimeField(default=timezone.now)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "countries"
        constraints = [
            models.UniqueConstraint(Lower('name'), name='country_name_ci_unique'),
        ]

    def __str__(self):
        return self.name
