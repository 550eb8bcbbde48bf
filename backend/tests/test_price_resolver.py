from decimal import Decimal
from unittest import mock

from sqlalchemy import select, func

from safari_pricing.core.errors import (
    PricingValidationError,
    StoreUnavailableError,
    NotFoundError,
)
from safari_pricing.models.park_product import ParkProduct, ParkProductPrice
from safari_pricing.schemas.pricing import BatchPricingRequest
from safari_pricing.services.price_resolver import PriceResolver, parse_amount

from tests.helpers import (
    DatabaseTestCase,
    SERENGETI,
    NGORONGORO,
    TARANGIRE,
    NON_RESIDENT,
    DAY_VISIT,
    VEHICLE_ENTRY,
    ADULTS,
    CHILDREN,
    PER_PERSON,
    HIGH_SEASON,
    LOW_SEASON,
    USD,
    TZS,
)


class PricingTestCase(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.resolver = PriceResolver(self.db, include_currency=False)

    async def product(self, park_id=SERENGETI, age_group_id=ADULTS):
        return await self.resolver.products.resolve_or_create_product(
            park_id, NON_RESIDENT, DAY_VISIT, age_group_id, PER_PERSON
        )

    async def price_count(self):
        return await self.db.scalar(select(func.count(ParkProductPrice.id)))

    async def product_count(self):
        return await self.db.scalar(select(func.count(ParkProduct.id)))


class TestParseAmount(PricingTestCase):
    async def test_valid_amounts(self):
        self.assertEqual(parse_amount("70.50"), Decimal("70.50"))
        self.assertEqual(parse_amount(Decimal("1")), Decimal("1"))

    async def test_invalid_amounts(self):
        for value in ("", "abc", "0", "-5", None, "NaN"):
            with self.assertRaises(PricingValidationError, msg=repr(value)):
                parse_amount(value)


class TestResolveOrCreatePrice(PricingTestCase):
    async def test_second_identical_submission_is_duplicate(self):
        product_id = await self.product()

        first = await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "70")
        second = await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "80")

        self.assertTrue(first.created)
        self.assertFalse(second.created)
        self.assertEqual(second.price_id, first.price_id)
        self.assertIn("Exact pricing already exists for: Serengeti National Park", second.message)
        self.assertEqual(await self.price_count(), 1)

    async def test_stored_amount_and_code(self):
        product_id = await self.product()
        resolution = await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "inclusive", "70.50")

        price = await self.db.get(ParkProductPrice, resolution.price_id)
        self.assertEqual(Decimal(str(price.unit_amount)), Decimal("70.50"))
        self.assertEqual(price.tax_behavior, 1)

    async def test_other_season_or_tax_behavior_is_not_duplicate(self):
        product_id = await self.product()
        await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "70")

        other_season = await self.resolver.resolve_or_create_price(product_id, LOW_SEASON, USD, "exclusive", "60")
        other_tax = await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "inclusive", "82.60")

        self.assertTrue(other_season.created)
        self.assertTrue(other_tax.created)
        self.assertEqual(await self.price_count(), 3)

    async def test_currency_not_in_key_by_default(self):
        product_id = await self.product()
        await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "70")

        tzs = await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, TZS, "exclusive", "175000")
        self.assertFalse(tzs.created)

    async def test_currency_in_key_when_enabled(self):
        resolver = PriceResolver(self.db, include_currency=True)
        product_id = await self.product()
        await resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "70")

        tzs = await resolver.resolve_or_create_price(product_id, HIGH_SEASON, TZS, "exclusive", "175000")
        self.assertTrue(tzs.created)

    async def test_legacy_exclusive_row_counts_as_duplicate(self):
        product_id = await self.product()
        self.db.add(ParkProductPrice(
            park_product_id=product_id,
            season_id=HIGH_SEASON,
            currency_id=USD,
            unit_amount=Decimal("70"),
            tax_behavior=4,
        ))
        await self.db.commit()

        resolution = await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "70")
        self.assertFalse(resolution.created)

    async def test_invalid_amount_rejected(self):
        product_id = await self.product()
        with self.assertRaises(PricingValidationError):
            await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, USD, "exclusive", "0")
        self.assertEqual(await self.price_count(), 0)

    async def test_unknown_product_rejected_without_insert(self):
        with self.assertRaises(PricingValidationError) as ctx:
            await self.resolver.resolve_or_create_price(999, HIGH_SEASON, USD, "inclusive", "10")
        self.assertEqual(ctx.exception.field, "park_product_id")
        self.assertEqual(await self.price_count(), 0)

    async def test_unknown_season_or_currency_rejected(self):
        product_id = await self.product()
        with self.assertRaises(PricingValidationError) as ctx:
            await self.resolver.resolve_or_create_price(product_id, 777, USD, "inclusive", "10")
        self.assertEqual(ctx.exception.field, "season_id")
        with self.assertRaises(PricingValidationError) as ctx:
            await self.resolver.resolve_or_create_price(product_id, HIGH_SEASON, 555, "inclusive", "10")
        self.assertEqual(ctx.exception.field, "currency_id")
        self.assertEqual(await self.price_count(), 0)

    async def test_missing_season_rejected(self):
        product_id = await self.product()
        with self.assertRaises(PricingValidationError) as ctx:
            await self.resolver.resolve_or_create_price(product_id, None, USD, "exclusive", "70")
        self.assertEqual(ctx.exception.field, "season_id")


class TestBatchPricing(PricingTestCase):
    def batch(self, **kwargs):
        defaults = dict(
            park_ids=[SERENGETI, NGORONGORO],
            park_category_id=NON_RESIDENT,
            entry_type_ids=[DAY_VISIT],
            age_group_ids=[ADULTS, CHILDREN],
            pricing_type_id=PER_PERSON,
            season_id=HIGH_SEASON,
            currency_id=USD,
            tax_behavior="exclusive",
            unit_amount=Decimal("70"),
        )
        defaults.update(kwargs)
        return BatchPricingRequest(**defaults)

    async def test_every_combination_priced(self):
        response = await self.resolver.create_pricing_batch(self.batch())

        self.assertEqual(response.total_combinations, 4)
        self.assertEqual(response.created_count, 4)
        self.assertFalse(response.aborted)
        self.assertEqual(response.conflicts, [])
        self.assertEqual(await self.product_count(), 4)
        self.assertEqual(await self.price_count(), 4)

    async def test_duplicate_combination_reported_and_others_created(self):
        existing = await self.product(park_id=NGORONGORO, age_group_id=ADULTS)
        await self.resolver.resolve_or_create_price(existing, HIGH_SEASON, USD, "exclusive", "50")

        response = await self.resolver.create_pricing_batch(self.batch())

        self.assertEqual(response.created_count, 3)
        self.assertEqual(response.conflicts, ["Ngorongoro Conservation Area"])
        self.assertIn("Ngorongoro Conservation Area", response.error)
        duplicates = [r for r in response.results if r.status == "duplicate"]
        self.assertEqual(len(duplicates), 1)
        self.assertEqual((duplicates[0].park_id, duplicates[0].age_group_id), (NGORONGORO, ADULTS))
        self.assertEqual(await self.price_count(), 4)

    async def test_store_failure_aborts_and_keeps_earlier_writes(self):
        real = self.resolver.resolve_or_create_price
        calls = []

        async def flaky(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise StoreUnavailableError("Error creating pricing")
            return await real(*args, **kwargs)

        with mock.patch.object(self.resolver, "resolve_or_create_price", side_effect=flaky):
            response = await self.resolver.create_pricing_batch(self.batch())

        self.assertTrue(response.aborted)
        self.assertEqual(response.created_count, 1)
        self.assertEqual(len(response.results), 2)
        self.assertEqual(response.failed_combination.status, "failed")
        self.assertEqual(
            (response.failed_combination.park_id, response.failed_combination.age_group_id),
            (SERENGETI, CHILDREN),
        )
        self.assertIn("Error creating pricing for Serengeti National Park", response.error)
        # the product of the failed combination stays without a price
        self.assertEqual(await self.product_count(), 2)
        self.assertEqual(await self.price_count(), 1)

    async def test_missing_fields_rejected(self):
        with self.assertRaises(PricingValidationError):
            await self.resolver.create_pricing_batch(self.batch(entry_type_ids=[]))
        with self.assertRaises(PricingValidationError):
            await self.resolver.create_pricing_batch(self.batch(unit_amount=None))
        self.assertEqual(await self.product_count(), 0)

    async def test_unknown_park_name_fallback(self):
        response = await self.resolver.create_pricing_batch(self.batch(park_ids=[TARANGIRE, 99]))

        self.assertTrue(response.aborted)
        self.assertEqual(response.failed_combination.park_name, "Unknown Park")


class TestPriceEdits(PricingTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.product_id = await self.product()
        resolution = await self.resolver.resolve_or_create_price(
            self.product_id, HIGH_SEASON, USD, "exclusive", "70"
        )
        self.price_id = resolution.price_id

    async def test_update_price(self):
        price = await self.resolver.update_price(self.price_id, "85.25", TZS, "inclusive")

        self.assertEqual(Decimal(str(price.unit_amount)), Decimal("85.25"))
        self.assertEqual(price.currency_id, TZS)
        self.assertEqual(price.tax_behavior, 1)

    async def test_update_to_unknown_currency_rejected(self):
        with self.assertRaises(PricingValidationError):
            await self.resolver.update_price(self.price_id, "85", 555, "inclusive")
        price = await self.db.get(ParkProductPrice, self.price_id)
        self.assertEqual(price.currency_id, USD)

    async def test_update_missing_price(self):
        with self.assertRaises(NotFoundError):
            await self.resolver.update_price(999, "85", USD, "inclusive")

    async def test_delete_product_refused_while_priced(self):
        with self.assertRaises(PricingValidationError):
            await self.resolver.delete_product(self.product_id)
        self.assertEqual(await self.product_count(), 1)

    async def test_delete_price_then_product(self):
        await self.resolver.delete_price(self.price_id)
        await self.resolver.delete_product(self.product_id)

        self.assertEqual(await self.price_count(), 0)
        self.assertEqual(await self.product_count(), 0)

    async def test_delete_missing_price(self):
        with self.assertRaises(NotFoundError):
            await self.resolver.delete_price(999)


class TestListPricing(PricingTestCase):
    async def test_rows_per_price_and_unpriced_product(self):
        priced = await self.product()
        await self.resolver.resolve_or_create_price(priced, HIGH_SEASON, USD, "exclusive", "70")
        await self.resolver.resolve_or_create_price(priced, LOW_SEASON, TZS, "inclusive", "150000")
        unpriced = await self.product(age_group_id=CHILDREN)

        rows = await self.resolver.list_pricing()

        self.assertEqual(len(rows), 3)
        first, second, third = rows
        self.assertEqual((first.season_name, first.currency_name, first.tax_behavior), ("High Season", "USD", "exclusive"))
        self.assertEqual((second.season_name, second.currency_name, second.tax_behavior), ("Low Season", "TZS", "inclusive"))
        self.assertEqual(first.product_code, "SNP-DV-N-16+")
        self.assertEqual(third.id, unpriced)
        self.assertIsNone(third.price_id)
        self.assertEqual(third.season_name, "Unknown Season")
        self.assertEqual(third.price, 0)
