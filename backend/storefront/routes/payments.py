# Overview: Stand-in payment provider endpoint for local checkout demos.

# backend/storefront/routes/payments.py
"""
Simulated payment provider.

Accepts the same body the checkout sends to the real provider
({amountCents, currency, reference, card, customer, decisionHint}) and
answers {status, id}. The decision is the client's decisionHint when it is a
known status, otherwise APPROVED. Nothing is charged and nothing is stored.
"""

import secrets

from flask import Blueprint, request, jsonify, current_app

from ..models import TRANSACTION_STATUSES

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")

DECIDABLE_STATUSES = set(TRANSACTION_STATUSES) - {"PENDING"}


@payments_bp.post("/simulate")
def simulate_payment_route():
    data = request.get_json(silent=True) or {}

    hint = str(data.get("decisionHint") or "").strip().upper()
    status = hint if hint in DECIDABLE_STATUSES else "APPROVED"
    provider_tx_id = f"sim_{secrets.token_hex(8)}"

    current_app.logger.info(
        "Simulated payment %s for reference=%s amount=%s -> %s",
        provider_tx_id,
        data.get("reference"),
        data.get("amountCents"),
        status,
    )
    return jsonify({"status": status, "id": provider_tx_id}), 200
