# bogo/engine/pricing.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from bogo.domain.bogo import CartLine, CartTotals, EngineSettings, LineTotal
from bogo.engine.ports import ProductLookup

MONEY = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(x: Decimal) -> Decimal:
    return x.quantize(MONEY, rounding=ROUND_HALF_UP)


def effective_discount(percentage) -> Decimal:
    pct = Decimal(str(percentage or 0))
    if pct < 0 or pct > HUNDRED:
        return Decimal("0")
    return pct


def effective_unit_price(original: Decimal, percentage) -> Decimal:
    return _money(Decimal(str(original)) * (1 - effective_discount(percentage) / HUNDRED))


def free_label(line: CartLine, settings: EngineSettings) -> str | None:
    if not line.is_free or not settings.show_free_price:
        return None
    if effective_discount(line.free.discount_percentage) == HUNDRED:
        return settings.free_item_label
    return None


def price_cart(lines: Iterable[CartLine], products: ProductLookup, settings: EngineSettings) -> CartTotals:
    """Prices every line from the current catalogue price; free lines get their discount here."""
    out = []
    subtotal_before = Decimal("0")
    total = Decimal("0")

    for line in lines:
        info = products.resolve(line.ref)
        original = _money(info.price) if info and info.exists else _money(line.unit_price)
        unit = effective_unit_price(original, line.free.discount_percentage) if line.is_free else original
        line_total = _money(unit * line.quantity)

        subtotal_before += original * line.quantity
        total += line_total
        out.append(
            LineTotal(
                line_id=line.id,
                original_unit_price=original,
                unit_price=unit,
                line_total=line_total,
                label=free_label(line, settings),
            )
        )

    subtotal_before = _money(subtotal_before)
    total = _money(total)
    return CartTotals(
        lines=out,
        subtotal_before=subtotal_before,
        free_discount_total=_money(subtotal_before - total),
        total=total,
    )
