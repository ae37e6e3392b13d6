"""Weight and price arithmetic for jewellery items.

Everything here is pure. Negative inputs are not rejected, they simply give
negative results; range checks belong to whoever collects the numbers.
"""


def net_weight(gross_weight, wastage):
    # Wastage is a percentage added on top of the gross weight
    return gross_weight + (gross_weight * wastage / 100)


def item_amount(net_wt, gold_rate, lab_rate):
    return (net_wt * gold_rate) + lab_rate


def price_item(item):
    """Return a copy of ``item`` with ``net_weight`` and ``amount`` recomputed.

    Stored derived values are ignored; they are only a cache of the inputs.
    """
    priced = dict(item)
    gross = float(item.get("gross_weight") or 0)
    wastage = float(item.get("wastage") or 0)
    gold_rate = float(item.get("gold_rate") or 0)
    lab_rate = float(item.get("lab_rate") or 0)
    priced.update(gross_weight=gross, wastage=wastage, gold_rate=gold_rate, lab_rate=lab_rate)
    priced["net_weight"] = net_weight(gross, wastage)
    priced["amount"] = item_amount(priced["net_weight"], gold_rate, lab_rate)
    return priced


def price_items(items):
    return [price_item(item) for item in items]


def invoice_total(items):
    total = 0
    for item in items:
        total += price_item(item)["amount"]
    return total


def money(value):
    return round(float(value or 0), 2)
