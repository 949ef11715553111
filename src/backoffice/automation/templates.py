"""Placeholder rendering for automation messages.

Templates use ``{name}``-style placeholders filled from the order payload and
the store. Missing values fall back to neutral French wording, the language
the stores write their templates in.
"""

import re

PLACEHOLDER = re.compile(r"\{(\w+)\}")

TRACKING_UNAVAILABLE = "(Lien non disponible)"

PAYMENT_METHOD_LABELS = {"cod": "Paiement à la livraison"}


def format_amount(amount):
    amount = float(amount)
    if amount.is_integer():
        return str(int(amount))
    return f"{amount:.2f}"


def placeholder_values(payload, tenant, tracking_url=None):
    total = payload.get("total")
    payment_method = payload.get("payment_method")
    return {
        "name": payload.get("name") or "Client",
        "product": payload.get("product") or "votre commande",
        "city": payload.get("city") or "votre ville",
        "total": f"{format_amount(total)} DH" if total else "le montant convenu",
        "payment_method": PAYMENT_METHOD_LABELS.get(payment_method, payment_method) or "Paiement à la livraison",
        "store_name": getattr(tenant, "name", None) or "Notre Boutique",
        "delivery_address": payload.get("address") or "votre adresse",
        "tracking": tracking_url or TRACKING_UNAVAILABLE,
    }


def render_message(template, payload, tenant, tracking_url=None):
    """Fill every known placeholder in ``template``. Unknown placeholders are left as written."""
    values = placeholder_values(payload, tenant, tracking_url)
    return PLACEHOLDER.sub(lambda match: values.get(match.group(1), match.group(0)), template or "")
