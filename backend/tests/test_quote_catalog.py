from datetime import date

from safari_pricing.services.price_resolver import PriceResolver
from safari_pricing.services.quote_catalog import QuoteCatalog

from tests.helpers import (
    DatabaseTestCase,
    SERENGETI,
    NON_RESIDENT,
    DAY_VISIT,
    ADULTS,
    CHILDREN,
    PER_PERSON,
    HIGH_SEASON,
    LOW_SEASON,
    USD,
    TZS,
)


class TestQuoteCatalog(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        resolver = PriceResolver(self.db, include_currency=True)
        self.adults = await resolver.products.resolve_or_create_product(
            SERENGETI, NON_RESIDENT, DAY_VISIT, ADULTS, PER_PERSON
        )
        await resolver.resolve_or_create_price(self.adults, HIGH_SEASON, USD, "exclusive", "70")
        await resolver.resolve_or_create_price(self.adults, LOW_SEASON, TZS, "inclusive", "150000")
        self.children = await resolver.products.resolve_or_create_product(
            SERENGETI, NON_RESIDENT, DAY_VISIT, CHILDREN, PER_PERSON
        )
        await resolver.resolve_or_create_price(self.children, LOW_SEASON, TZS, "inclusive", "50000")
        self.catalog = QuoteCatalog(self.db)

    async def test_without_dates_every_price_is_used(self):
        result = await self.catalog.products_for(SERENGETI, "Non-Resident", "Day Visit")

        self.assertFalse(result.season_filtered)
        self.assertEqual([o.id for o in result.usd_products], [self.adults])
        self.assertEqual([o.id for o in result.tzs_products], [self.adults, self.children])
        adults = result.find(self.adults)
        self.assertEqual(adults.usd_price, 70)
        self.assertEqual(adults.tzs_price, 150000)
        self.assertEqual(adults.usd_tax_behavior, 2)
        self.assertEqual(adults.tzs_tax_behavior, 1)

    async def test_trip_dates_keep_overlapping_seasons(self):
        result = await self.catalog.products_for(
            SERENGETI, "Non-Resident", "Day Visit", date(2024, 7, 15), date(2024, 7, 20)
        )

        self.assertTrue(result.season_filtered)
        self.assertEqual([o.id for o in result.usd_products], [self.adults])
        self.assertEqual(result.tzs_products, [])
        self.assertEqual(result.find(self.adults).tzs_price, 0)
        self.assertIsNone(result.find(self.children))

    async def test_no_overlap_falls_back_to_all_seasons(self):
        result = await self.catalog.products_for(
            SERENGETI, "Non-Resident", "Day Visit", date(2025, 1, 1), date(2025, 1, 5)
        )

        self.assertFalse(result.season_filtered)
        self.assertEqual(len(result.tzs_products), 2)

    async def test_other_selection_is_empty(self):
        result = await self.catalog.products_for(SERENGETI, "East African Citizen", "Day Visit")

        self.assertEqual(result.usd_products, [])
        self.assertEqual(result.tzs_products, [])
