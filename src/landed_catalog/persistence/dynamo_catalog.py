from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from landed_catalog.engine.canonical.models import LocalProduct, LocalVariant
from landed_catalog.util.errors import CatalogStoreError, SlugConflictError

PRODUCT_SK = "PRODUCT"
VARIANT_PREFIX = "VARIANT#"


def _product_pk(product_id: str) -> str:
    return f"PRODUCT#{product_id}"


def _slug_key(slug: str) -> Dict[str, str]:
    return {"pk": f"SLUG#{slug}", "sk": "SLUG"}


def _external_key(external_id: str) -> Dict[str, str]:
    return {"pk": f"EXTERNAL#{external_id}", "sk": "EXTERNAL"}


def _is_conditional_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


def _cancellation_codes(exc: ClientError) -> List[str]:
    if exc.response.get("Error", {}).get("Code") != "TransactionCanceledException":
        return []
    return [str(reason.get("Code")) for reason in exc.response.get("CancellationReasons", [])]


class DynamoCatalog:
    """Catalog store on a single DynamoDB table keyed by ``pk``/``sk``.

    Products live under ``PRODUCT#<id>`` with their variants as sibling
    ``VARIANT#`` items. Slug and external-id lookups go through guard items,
    written together with the product in one conditional transaction; the slug
    guard is what makes slugs globally unique.
    """

    def __init__(self, table_name: str) -> None:
        self.table = boto3.resource("dynamodb").Table(table_name)

    def _product_item(self, product_id: str) -> Optional[Dict[str, Any]]:
        response = self.table.get_item(Key={"pk": _product_pk(product_id), "sk": PRODUCT_SK})
        return response.get("Item")

    def find_by_external_id(self, external_id: str) -> Optional[LocalProduct]:
        try:
            guard = self.table.get_item(Key=_external_key(external_id)).get("Item")
            if not guard:
                return None
            item = self._product_item(guard["product_id"])
        except (BotoCoreError, ClientError) as exc:
            raise CatalogStoreError(str(exc)) from exc
        if not item:
            return None
        return _to_product(item)

    def slug_exists(self, slug: str) -> bool:
        try:
            response = self.table.get_item(Key=_slug_key(slug))
        except (BotoCoreError, ClientError) as exc:
            raise CatalogStoreError(str(exc)) from exc
        return "Item" in response

    def get_product(self, product_id: str) -> Optional[LocalProduct]:
        try:
            item = self._product_item(product_id)
        except (BotoCoreError, ClientError) as exc:
            raise CatalogStoreError(str(exc)) from exc
        return _to_product(item) if item else None

    def insert_product(self, payload: Dict[str, Any]) -> str:
        """Write the product and its slug and external-id guards in one transaction."""
        slug = payload.get("slug")
        if not slug:
            raise CatalogStoreError("slug is required")
        product_id = uuid.uuid4().hex
        item = {"pk": _product_pk(product_id), "sk": PRODUCT_SK, "product_id": product_id}
        item.update(payload)
        writes = [
            self._guarded_put({**_slug_key(slug), "product_id": product_id}),
            self._guarded_put(item),
        ]
        external_id = payload.get("external_id")
        if external_id:
            writes.append(self._guarded_put({**_external_key(external_id), "product_id": product_id}))
        try:
            self.table.meta.client.transact_write_items(TransactItems=writes)
        except ClientError as exc:
            reasons = _cancellation_codes(exc)
            if reasons[:1] == ["ConditionalCheckFailed"]:
                raise SlugConflictError(slug) from exc
            if len(reasons) > 2 and reasons[2] == "ConditionalCheckFailed":
                raise CatalogStoreError(f"external id already exists: {external_id}") from exc
            raise CatalogStoreError(str(exc)) from exc
        except BotoCoreError as exc:
            raise CatalogStoreError(str(exc)) from exc
        return product_id

    def _guarded_put(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "Put": {
                "TableName": self.table.name,
                "Item": item,
                "ConditionExpression": "attribute_not_exists(pk)",
            }
        }

    def update_product(self, product_id: str, payload: Dict[str, Any]) -> None:
        fields = dict(payload)
        fields.pop("product_id", None)
        if not fields:
            return
        expression = []
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        for index, (name, value) in enumerate(sorted(fields.items())):
            expression.append(f"#f{index} = :v{index}")
            names[f"#f{index}"] = name
            values[f":v{index}"] = value
        try:
            self.table.update_item(
                Key={"pk": _product_pk(product_id), "sk": PRODUCT_SK},
                UpdateExpression="SET " + ", ".join(expression),
                ConditionExpression="attribute_exists(pk)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
            external_id = fields.get("external_id")
            if external_id:
                self.table.put_item(Item={**_external_key(external_id), "product_id": product_id})
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise CatalogStoreError(f"product not found: {product_id}") from exc
            raise CatalogStoreError(str(exc)) from exc
        except BotoCoreError as exc:
            raise CatalogStoreError(str(exc)) from exc

    def _variant_keys(self, product_id: str) -> List[Dict[str, str]]:
        keys: List[Dict[str, str]] = []
        query: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(_product_pk(product_id)) & Key("sk").begins_with(VARIANT_PREFIX),
            "ProjectionExpression": "pk, sk",
        }
        while True:
            response = self.table.query(**query)
            keys.extend({"pk": item["pk"], "sk": item["sk"]} for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return keys
            query["ExclusiveStartKey"] = last_key

    def replace_variants(self, product_id: str, variants: List[LocalVariant]) -> None:
        pk = _product_pk(product_id)
        try:
            existing = self._variant_keys(product_id)
            with self.table.batch_writer() as batch:
                for key in existing:
                    batch.delete_item(Key=key)
            with self.table.batch_writer() as batch:
                for index, variant in enumerate(variants):
                    item = variant.model_dump()
                    item.update({"pk": pk, "sk": f"{VARIANT_PREFIX}{index:05d}"})
                    batch.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            raise CatalogStoreError(str(exc)) from exc

    def list_variants(self, product_id: str) -> List[LocalVariant]:
        try:
            response = self.table.query(
                KeyConditionExpression=Key("pk").eq(_product_pk(product_id)) & Key("sk").begins_with(VARIANT_PREFIX)
            )
        except (BotoCoreError, ClientError) as exc:
            raise CatalogStoreError(str(exc)) from exc
        return [_to_variant(item) for item in response.get("Items", [])]


def _to_product(item: Dict[str, Any]) -> LocalProduct:
    data = {key: value for key, value in item.items() if key not in {"pk", "sk"}}
    data["stock"] = int(data.get("stock", 0))
    return LocalProduct.model_validate(data)


def _to_variant(item: Dict[str, Any]) -> LocalVariant:
    data = {key: value for key, value in item.items() if key not in {"pk", "sk"}}
    data["stock"] = int(data.get("stock", 0))
    return LocalVariant.model_validate(data)
