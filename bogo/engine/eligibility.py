# bogo/engine/eligibility.py
from bogo.domain.bogo import Rule


def qualifies(rule: Rule, bought_qty: int) -> bool:
    return bought_qty >= rule.buy_quantity


def eligible_free_quantity(rule: Rule, bought_qty: int) -> int:
    """
    Free units a rule grants for ``bought_qty`` paid units.

    Whole multiples of ``buy_quantity`` only, times ``get_quantity``, clamped
    to ``max_free_quantity`` when the rule has one.
    """
    if not qualifies(rule, bought_qty):
        return 0

    eligible = (bought_qty // rule.buy_quantity) * rule.get_quantity
    if rule.max_free_quantity is not None:
        eligible = min(eligible, rule.max_free_quantity)
    return eligible
