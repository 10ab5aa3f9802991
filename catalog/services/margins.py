"""
Margin floors inherited through the category tree.

A category's own ``min_margin_percentage`` / ``normal_margin_percentage``
wins when it is > 0; otherwise the value comes from the nearest ancestor
that sets it, and finally from the system defaults
(``margins.min_margin_percentage`` / ``margins.default_margin_percentage``).
Min and normal are resolved independently.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from catalog.models import Category, Product
from core.exceptions import ConfigurationError
from core.money import HUNDRED, percentage, q2, to_decimal
from core.services.settings import get_decimal_setting

logger = logging.getLogger(__name__)

MAX_CATEGORY_DEPTH = 32


@dataclass(frozen=True)
class EffectiveMargin:
    min_margin: Decimal
    normal_margin: Decimal


def _ancestry(category: Category):
    """Yield category, parent, grandparent ... with cycle and depth guards."""
    seen = set()
    node = category
    depth = 0
    while node is not None:
        if node.pk in seen or depth >= MAX_CATEGORY_DEPTH:
            logger.error(
                "Category hierarchy is cyclic or too deep starting at category_id=%s (stopped at %s)",
                category.pk,
                node.pk,
            )
            raise ConfigurationError(
                f"Category hierarchy starting at {category.pk} is cyclic or deeper than {MAX_CATEGORY_DEPTH}",
                category_id=category.pk,
            )
        seen.add(node.pk)
        yield node
        node = node.parent
        depth += 1


def effective_margins(category: Optional[Category]) -> EffectiveMargin:
    min_margin = None
    normal_margin = None

    if category is not None:
        for node in _ancestry(category):
            if min_margin is None and to_decimal(node.min_margin_percentage) > 0:
                min_margin = to_decimal(node.min_margin_percentage)
            if normal_margin is None and to_decimal(node.normal_margin_percentage) > 0:
                normal_margin = to_decimal(node.normal_margin_percentage)
            if min_margin is not None and normal_margin is not None:
                break

    if min_margin is None:
        min_margin = get_decimal_setting("margins", "min_margin_percentage")
    if normal_margin is None:
        normal_margin = get_decimal_setting("margins", "default_margin_percentage")

    return EffectiveMargin(min_margin=q2(min_margin), normal_margin=q2(normal_margin))


def margins_for_product(product: Product) -> EffectiveMargin:
    return effective_margins(product.category)


def suggest_price(cost, target_margin_percentage) -> Decimal:
    """price = cost * (1 + margin/100)"""
    return q2(to_decimal(cost) * (1 + to_decimal(target_margin_percentage) / HUNDRED))


def validate_proposed_price(product: Product, proposed_price, cost) -> dict:
    margins = margins_for_product(product)
    calculated = percentage(to_decimal(proposed_price) - to_decimal(cost), cost)
    return {
        "is_valid": calculated >= margins.min_margin,
        "proposed_price": q2(proposed_price),
        "cost": q2(cost),
        "calculated_margin": calculated,
        "minimum_required_margin": margins.min_margin,
        "suggested_min_price": suggest_price(cost, margins.min_margin),
        "suggested_price": suggest_price(cost, margins.normal_margin),
        "category": product.category.path if product.category_id else None,
    }
