"""Product reference data — owned by the catalog, consumed (not owned) here."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Product:
    id: int
    seller_id: int
    name: str
    price: Decimal
    stock: int
