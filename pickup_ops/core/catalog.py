"""
Waste category catalog

One table of categories (fleets) with their optional sub-categories, shared by
the customer booking form and every partner view.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class SubCategory:
    id: str
    label: str
    description: str = ""


@dataclass(frozen=True)
class WasteCategory:
    id: str
    label: str
    sub_categories: Tuple[SubCategory, ...] = field(default_factory=tuple)


DEFAULT_CATEGORIES: Tuple[WasteCategory, ...] = (
    WasteCategory("plastic", "Plastic"),
    WasteCategory("paper", "Paper/Cardboard"),
    WasteCategory("electronic", "E-Waste"),
    WasteCategory("organic", "Organic"),
    WasteCategory(
        "metal",
        "Metal Waste",
        (
            SubCategory("metals_core", "Metals", "Industrial alloys, steel, and aluminum."),
            SubCategory("scraps_mixed", "Scraps", "Mixed demolition and construction scrap."),
        ),
    ),
)

TIME_SLOTS: List[str] = [
    "9:00 AM - 11:00 AM",
    "11:00 AM - 1:00 PM",
    "1:00 PM - 3:00 PM",
    "3:00 PM - 5:00 PM",
]

SERVICE_AREAS: List[str] = [
    "Downtown Eco-District",
    "Green Valley Residential",
    "North Industrial Park",
    "Sunset Bay Waterfront",
    "Central Heights",
    "Western Suburbs",
    "East Riverside",
]


class WasteCatalog:
    """Lookup helpers over the category table"""

    def __init__(self, categories: Tuple[WasteCategory, ...] = DEFAULT_CATEGORIES):
        self._categories: Dict[str, WasteCategory] = {c.id: c for c in categories}

    def ids(self) -> List[str]:
        return list(self._categories)

    def categories(self) -> List[WasteCategory]:
        return list(self._categories.values())

    def get(self, waste_type: Optional[str]) -> Optional[WasteCategory]:
        if waste_type is None:
            return None
        return self._categories.get(waste_type)

    def is_known(self, waste_type: Optional[str]) -> bool:
        return self.get(waste_type) is not None

    def label(self, waste_type: str) -> str:
        """Display label, or the raw id for types the catalog does not know"""
        category = self.get(waste_type)
        return category.label if category else waste_type

    def sub_categories(self, waste_type: Optional[str]) -> List[SubCategory]:
        category = self.get(waste_type)
        return list(category.sub_categories) if category else []

    def has_sub_categories(self, waste_type: Optional[str]) -> bool:
        return bool(self.sub_categories(waste_type))

    def is_valid_sub_type(self, waste_type: Optional[str], sub_type: str) -> bool:
        return any(sub.id == sub_type for sub in self.sub_categories(waste_type))


default_catalog = WasteCatalog()
