"""Data models for catalog records."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

__all__ = ["Product", "ProductFlags", "Issue", "ProductGroup", "CatalogData"]


@dataclass
class ProductFlags:
    """Quality flags raised while building a product from foods/."""

    missing_text: bool = False
    missing_images: bool = False
    placeholder_removed: bool = False
    placeholder_used_for_name: bool = False
    no_sku: bool = False
    doc_parse_failed: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "missing_text": self.missing_text,
            "missing_images": self.missing_images,
            "placeholder_removed": self.placeholder_removed,
            "placeholder_used_for_name": self.placeholder_used_for_name,
            "no_sku": self.no_sku,
            "doc_parse_failed": self.doc_parse_failed,
        }


@dataclass
class Product:
    """A product built from one group of files under foods/.

    Only the builder creates these. Later passes work on the plain dict form,
    since the catalog file carries fields no single pass owns.
    """

    # Required fields
    id: str
    name: str
    brand: str
    category: str

    # Optional fields inferred from the folder structure
    name_ru: Optional[str] = None
    name_en: Optional[str] = None
    image: Optional[str] = None
    sku: Optional[str] = None
    type: Optional[str] = None
    weight: Optional[str] = None
    flavors: List[str] = field(default_factory=list)
    flags: ProductFlags = field(default_factory=ProductFlags)
    source_path: Optional[str] = None

    # Filled from parsed documents
    composition: Optional[List[str]] = None
    nutrition: Optional[List[str]] = None
    packaging: Optional[List[str]] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the key names the site scripts read."""
        row: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "nameRu": self.name_ru or self.name,
            "nameEn": self.name_en or self.name,
            "brand": self.brand,
            "category": self.category,
            "image": self.image,
            "sku": self.sku,
            "type": self.type,
            "weight": self.weight,
            "flavors": list(self.flavors),
            "flags": self.flags.to_dict(),
            "sourcePath": self.source_path,
        }
        # Document fields only appear when a document was parsed
        if self.description is not None:
            row["composition"] = self.composition
            row["nutrition"] = self.nutrition
            row["packaging"] = self.packaging
            row["description"] = self.description
        return row


@dataclass
class Issue:
    """A problem found while building or checking the catalog."""

    product_id: str
    issue: str
    path: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {"productId": self.product_id, "issue": self.issue}
        if self.path is not None:
            row["path"] = self.path
        row.update(self.extra)
        return row


@dataclass
class ProductGroup:
    """Files under foods/ that belong to one product."""

    key: str
    brand: str
    product_folder: str
    sku: Optional[str] = None
    image_paths: List[str] = field(default_factory=list)
    placeholder_images: List[str] = field(default_factory=list)
    doc_paths: List[str] = field(default_factory=list)


@dataclass
class CatalogData:
    """In-memory form of data/products.json.

    ``extra`` keeps any top-level keys besides products/categories/brands so
    that a load/save round-trip never drops data.
    """

    products: List[Dict[str, Any]] = field(default_factory=list)
    categories: Dict[str, Any] = field(default_factory=dict)
    brands: List[Any] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CatalogData":
        extra = {k: v for k, v in raw.items() if k not in ("products", "categories", "brands")}
        return cls(
            products=list(raw.get("products") or []),
            categories=dict(raw.get("categories") or {}),
            brands=list(raw.get("brands") or []),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "products": self.products,
            "categories": self.categories,
            "brands": self.brands,
        }
        doc.update(self.extra)
        return doc

    def product_ids(self) -> List[str]:
        return [str(p.get("id")) for p in self.products]
