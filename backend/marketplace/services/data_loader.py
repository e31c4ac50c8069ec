"""Catalog import from JSON exports.

Accepted file shapes: ``{"products": [...]}``, a bare array, or one product
object. Records from the legacy catalog use ``_id``, ``title``,
``manufacturer`` and a flat ``price``; they are mapped onto ``ProductBase``.
"""

import json
import logging
from pathlib import Path
from typing import Any

from marketplace.models.product import ProductBase

logger = logging.getLogger(__name__)


class DataLoader:
    """Reads catalog exports from disk and validates them into products."""

    @staticmethod
    def load_json_file(file_path: str | Path) -> list[dict[str, Any]]:
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if file_path.suffix.lower() != ".json":
            raise ValueError(f"File must be a JSON file: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            payload = json.load(f)

        if isinstance(payload, dict):
            records = payload["products"] if "products" in payload else [payload]
        elif isinstance(payload, list):
            records = payload
        else:
            raise ValueError(f"{file_path}: expected a 'products' array, an object, or an array")

        logger.info("Read %d records from %s", len(records), file_path.name)
        return records

    @staticmethod
    def transform_catalog_product(raw: dict[str, Any]) -> dict[str, Any]:
        """Map a raw catalog record onto ProductBase fields."""
        pricing = raw.get("pricing") or {}
        if not pricing and "price" in raw:
            pricing = {"basePrice": str(raw["price"])}

        return {
            "productId": str(raw.get("productId") or raw.get("_id") or ""),
            "name": raw.get("name") or raw.get("title", ""),
            "description": raw.get("description", ""),
            "manufacturerId": str(raw.get("manufacturerId") or raw.get("manufacturer") or ""),
            "category": raw.get("category", "other"),
            "pricing": pricing,
            "status": raw.get("status", "active"),
        }

    @staticmethod
    def load_directory(directory_path: str | Path) -> list[dict[str, Any]]:
        """Read every ``*.json`` file in name order; unreadable files are skipped."""
        directory_path = Path(directory_path)
        if not directory_path.is_dir():
            raise FileNotFoundError(f"Catalog directory not found: {directory_path}")

        records: list[dict[str, Any]] = []
        for json_file in sorted(directory_path.glob("*.json")):
            try:
                records.extend(DataLoader.load_json_file(json_file))
            except (OSError, ValueError) as e:
                logger.error("Skipping %s: %s", json_file.name, e)

        if not records:
            logger.warning("No catalog records found in %s", directory_path)
        return records

    @staticmethod
    def validate_and_parse_products(data: list[dict[str, Any]]) -> list[ProductBase]:
        products: list[ProductBase] = []
        rejected = 0
        for idx, item in enumerate(data):
            try:
                products.append(ProductBase(**DataLoader.transform_catalog_product(item)))
            except ValueError as e:
                rejected += 1
                logger.warning("Rejected catalog record %d: %s", idx, e)

        logger.info("Validated %d products, rejected %d", len(products), rejected)
        return products

    @staticmethod
    def load_products_from_directory(directory_path: str | Path) -> list[ProductBase]:
        return DataLoader.validate_and_parse_products(DataLoader.load_directory(directory_path))
