from __future__ import annotations

from typing import Iterable, List, Optional

from landed_catalog.app.models.config import AnomalyConfig, CatalogConfig, EngineConfig, PricingConfig
from landed_catalog.engine.pricing.anomalies import AnomalyThresholds
from landed_catalog.engine.pricing.policy import PricingPolicy
from landed_catalog.engine.pricing.shipping import ShippingTier
from landed_catalog.engine.reconcile.engine import (
    CatalogCapabilities,
    CatalogReconciler,
    ProductInput,
    ReconcileOptions,
    ReconcileResult,
    ShippingQuoter,
)
from landed_catalog.persistence.catalog_store import CatalogStore
from landed_catalog.persistence.dynamo_catalog import DynamoCatalog


def build_policy(config: PricingConfig) -> PricingPolicy:
    return PricingPolicy(
        margin=config.margin,
        round_to=config.round_to,
        endings=tuple(config.endings),
        floor_price=config.floor_price,
        shipping_tiers=tuple(
            ShippingTier(max_weight_kg=tier.max_weight_kg, price=tier.price) for tier in config.shipping_tiers
        ),
        volumetric_divisor=config.volumetric_divisor,
        fx_rates=dict(config.fx_rates),
        local_currency=config.local_currency.strip().upper(),
        handling_fee=config.handling_fee,
        vat_rate=config.vat_rate,
    )


def build_thresholds(config: AnomalyConfig) -> AnomalyThresholds:
    return AnomalyThresholds(
        volumetric_ratio=config.volumetric_ratio,
        shipping_per_kg=config.shipping_per_kg,
        thin_margin_ratio=config.thin_margin_ratio,
        shipping_share_of_retail=config.shipping_share_of_retail,
        heavy_parcel_kg=config.heavy_parcel_kg,
    )


def build_capabilities(config: CatalogConfig) -> CatalogCapabilities:
    return CatalogCapabilities(
        optional_fields=frozenset(config.optional_fields),
        supports_variants=config.supports_variants,
    )


def build_reconciler(
    config: EngineConfig,
    *,
    store: Optional[CatalogStore] = None,
    shipping_quoter: Optional[ShippingQuoter] = None,
) -> CatalogReconciler:
    if store is None and config.catalog.table_name:
        store = DynamoCatalog(config.catalog.table_name)
    return CatalogReconciler(
        store,
        policy=build_policy(config.pricing),
        capabilities=build_capabilities(config.catalog),
        shipping_quoter=shipping_quoter,
        thresholds=build_thresholds(config.anomalies),
        max_slug_attempts=config.catalog.max_slug_attempts,
    )


def reconcile_products(
    products: Iterable[ProductInput],
    config: EngineConfig,
    *,
    store: Optional[CatalogStore] = None,
    options: Optional[ReconcileOptions] = None,
) -> List[ReconcileResult]:
    reconciler = build_reconciler(config, store=store)
    return reconciler.reconcile_many(products, options)
