"""
Product classifier

Turns a recognition-service scan into a CapturedItem and, for food products,
a suggested answer for food questions. Keyword rules are checked in priority
order; the first group that matches wins.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .quiz.schema import CapturedItem, QuestionCategory, SustainabilityData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Suggestion:
    """Advisory answer for questions in a given category."""
    answer: str
    category: QuestionCategory = QuestionCategory.FOOD


@dataclass(frozen=True)
class KeywordRule:
    """One rule group: any keyword in any checked field -> answer."""
    answer: str
    keywords: tuple[str, ...]
    check_name: bool = False  # category is always checked

    def matches(self, name: str, category: str) -> bool:
        haystacks = (category, name) if self.check_name else (category,)
        return any(k in h for h in haystacks for k in self.keywords)


# Priority order matters: "organic candy" is packaged, not plant-based.
FOOD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        answer="packaged",
        keywords=(
            "snack", "packaged", "processed", "crisp", "candy", "candies",
            "chocolate", "sweet", "biscuit", "cookie", "confectioner", "tangfastics",
        ),
        check_name=True,
    ),
    KeywordRule(answer="plant-based", keywords=("plant", "vegetable", "fruit", "organic")),
    KeywordRule(answer="meat-heavy", keywords=("meat", "beef", "chicken", "pork")),
    KeywordRule(answer="mixed", keywords=("mixed", "dairy")),
)


def classify_product(name: Optional[str], category: Optional[str]) -> Optional[Suggestion]:
    """
    Suggest a food answer from a product's name and detected category.

    Args:
        name: Product name from the scan
        category: Detected product category from the scan

    Returns:
        Suggestion, or None if no rule group matches
    """
    name_check = (name or "").lower()
    category_check = (category or "").lower()

    for rule in FOOD_RULES:
        if rule.matches(name_check, category_check):
            logger.debug(f"Classified {name!r} / {category!r} as {rule.answer}")
            return Suggestion(answer=rule.answer)

    logger.debug(f"No food suggestion for {name!r} / {category!r}")
    return None


@dataclass
class ScanResult:
    """Response from the barcode/image recognition service."""
    success: bool
    barcode: Optional[str] = None
    product_info: dict = field(default_factory=dict)
    product_details: dict = field(default_factory=dict)
    sustainability: Optional[SustainabilityData] = None
    detected: bool = False
    error: Optional[str] = None

    @property
    def product_name(self) -> str:
        return (
            self.product_info.get("name")
            or self.product_details.get("name")
            or (self.sustainability.name if self.sustainability else "")
            or "Unknown Product"
        )

    @property
    def detected_category(self) -> str:
        return (
            self.product_info.get("category")
            or (self.sustainability.category if self.sustainability else "")
            or "unknown"
        )

    @property
    def usable(self) -> bool:
        """Only successful scans with a barcode become captured items."""
        return self.success and bool(self.barcode)

    @classmethod
    def from_dict(cls, data: dict) -> "ScanResult":
        sustainability = data.get("sustainability")
        return cls(
            success=bool(data.get("success", False)),
            barcode=data.get("barcode"),
            product_info=data.get("product_info") or {},
            product_details=data.get("product_details") or {},
            sustainability=SustainabilityData.from_dict(sustainability) if sustainability else None,
            detected=bool(data.get("detected", False)),
            error=data.get("error"),
        )

    @classmethod
    def failed(cls, error: str) -> "ScanResult":
        return cls(success=False, error=error)


def captured_item_from_scan(scan: ScanResult, item_type: str) -> CapturedItem:
    """
    Build a CapturedItem from a scan.

    Args:
        scan: Recognition result
        item_type: "food" or "clothing", from the active question's category

    Returns:
        CapturedItem with the scan's classification metadata
    """
    materials = scan.product_info.get("materials")
    if not materials and scan.sustainability:
        materials = scan.sustainability.ingredients

    confidence = scan.product_info.get("confidence")
    confidence = 0.9 if confidence is None else max(0.0, min(1.0, float(confidence)))

    return CapturedItem(
        item_type=item_type,
        category=scan.detected_category,
        materials=tuple(materials or ()),
        barcode=scan.barcode,
        confidence=confidence,
        source="barcode",
        product_name=scan.product_name,
        sustainability=scan.sustainability,
    )
