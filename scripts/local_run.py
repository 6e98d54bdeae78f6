#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from landed_catalog.app.config.loader import load_engine_config
from landed_catalog.engine.pipeline import reconcile_products
from landed_catalog.engine.reconcile.engine import ReconcileOptions
from landed_catalog.persistence.catalog_store import InMemoryCatalogStore


def load_products(path: Path) -> list[dict]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = data.get("products", [])
    if not isinstance(data, list):
        raise ValueError("products file must hold a list or {\"products\": [...]}")
    return data


def write_report(path: Path, report: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(report, handle, indent=2, default=str)


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile supplier products into an in-memory catalog")
    parser.add_argument("--config", help="Path to engine config YAML (defaults apply when omitted)")
    parser.add_argument("--products", required=True, help="Path to a JSON file of supplier products")
    parser.add_argument("--update-price", action="store_true")
    parser.add_argument("--update-images", action="store_true")
    parser.add_argument("--update-video", action="store_true")
    parser.add_argument("--category")
    parser.add_argument("--output", default="outputs/reconcile_report.json")
    args = parser.parse_args()

    config = load_engine_config(args.config)
    store = InMemoryCatalogStore()
    options = ReconcileOptions(
        update_images=args.update_images,
        update_video=args.update_video,
        update_price=args.update_price,
        category=args.category,
    )
    results = reconcile_products(load_products(Path(args.products)), config, store=store, options=options)

    report = {
        "summary": {
            "products": len(results),
            "succeeded": sum(1 for result in results if result.ok),
            "failed": sum(1 for result in results if not result.ok),
        },
        "results": [asdict(result) for result in results],
        "catalog": [
            {
                **product.model_dump(),
                "variants": [variant.model_dump() for variant in store.list_variants(product.product_id)],
            }
            for product in store.list_products()
        ],
    }
    write_report(Path(args.output), report)


if __name__ == "__main__":
    main()
