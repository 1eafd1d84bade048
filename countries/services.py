import asyncio
import enum
import logging
from typing import NamedTuple

from django.utils import timezone

from .estimator import estimate, random_multiplier
from .exceptions import RefreshFailed
from .gateway import CountryDataGateway, GatewayConfig
from .image_utils import SummaryRenderer
from .store import CountrySnapshot, CountryStore

logger = logging.getLogger(__name__)


class RefreshState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    COMPUTING = "computing"
    COMMITTING = "committing"
    RENDERING = "rendering"
    DONE = "done"


class RefreshResult(NamedTuple):
    success: bool
    last_refreshed_at: object


def run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class RefreshOrchestrator:
    """
    One refresh: fetch both feeds, estimate GDP per country, upsert every
    country in a single transaction, then redraw the summary image.

    Any failure sends the orchestrator back to IDLE. A failed render is
    logged but the refresh still succeeds, since the data is committed.
    """

    def __init__(self, gateway, store, renderer, multiplier=random_multiplier, clock=timezone.now):
        self.gateway = gateway
        self.store = store
        self.renderer = renderer
        self.multiplier = multiplier
        self.clock = clock
        self.state = RefreshState.IDLE

    def _enter(self, state):
        logger.debug("Refresh %s -> %s", self.state.value, state.value)
        self.state = state

    def refresh(self) -> RefreshResult:
        try:
            self._enter(RefreshState.FETCHING)
            countries, rates = run_async(self.gateway.fetch())

            self._enter(RefreshState.COMPUTING)
            snapshots = [self.compute(country, rates) for country in countries]

            self._enter(RefreshState.COMMITTING)
            refreshed_at = self.commit(snapshots)
        except Exception:
            self._enter(RefreshState.IDLE)
            raise

        self._enter(RefreshState.RENDERING)
        try:
            self.renderer.render()
        except Exception:
            logger.exception("Summary image generation failed after refresh")

        self._enter(RefreshState.DONE)
        logger.info("Refreshed %d countries at %s", len(snapshots), refreshed_at.isoformat())
        self._enter(RefreshState.IDLE)
        return RefreshResult(success=True, last_refreshed_at=refreshed_at)

    def compute(self, country, rates) -> CountrySnapshot:
        exchange_rate, estimated_gdp = estimate(
            country.population, country.currency_code, rates, multiplier=self.multiplier
        )
        return CountrySnapshot(
            name=country.name,
            capital=country.capital,
            region=country.region,
            population=country.population,
            currency_code=country.currency_code,
            exchange_rate=exchange_rate,
            estimated_gdp=estimated_gdp,
            flag_url=country.flag_url,
        )

    def commit(self, snapshots):
        refreshed_at = self.clock()
        try:
            with self.store.transaction() as tx:
                for snapshot in snapshots:
                    tx.upsert(snapshot, refreshed_at)
        except Exception as exc:
            logger.exception("Refresh failed, rolled back %d countries", len(snapshots))
            raise RefreshFailed(exc) from exc

        logger.info("Committed refresh: %d created, %d updated", tx.created, tx.updated)
        return refreshed_at


def get_country_store():
    return CountryStore()


def get_summary_renderer(store=None):
    return SummaryRenderer(store or get_country_store())


def get_refresh_orchestrator():
    store = get_country_store()
    return RefreshOrchestrator(
        gateway=CountryDataGateway(GatewayConfig.from_settings()),
        store=store,
        renderer=get_summary_renderer(store),
    )
