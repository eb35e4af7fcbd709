# Overview: Flask API routes for checkout transactions; maps workflow errors to HTTP codes.

"""Transaction API routes"""

from flask import Blueprint, current_app, jsonify, request

from ..services import transaction_service
from ..services.results import (
    AmountMismatch,
    InsufficientStock,
    InvalidPayload,
    InvalidStatus,
    NothingToUpdate,
    ProductNotFound,
    TransactionNotFound,
)

transactions_bp = Blueprint("transactions", __name__, url_prefix="/transactions")

# error type -> (HTTP status, message)
ERROR_RESPONSES = {
    InvalidPayload: (400, "Invalid transaction payload"),
    AmountMismatch: (400, "Amount mismatch"),
    InvalidStatus: (400, "Invalid transaction status"),
    NothingToUpdate: (400, "No fields provided to update"),
    ProductNotFound: (404, "Product not found"),
    TransactionNotFound: (404, "Transaction not found"),
    InsufficientStock: (409, "Insufficient stock"),
}


def _repository():
    return current_app.extensions["transactions_repository"]


def error_response(error):
    """Turn a workflow error into (body, status). Unknown error types are a programming error."""
    try:
        status, message = ERROR_RESPONSES[type(error)]
    except KeyError:
        raise TypeError(f"Unmapped transaction error: {error!r}") from None
    body = {"error": message, "type": error.type, **error.to_dict()}
    return jsonify(body), status


@transactions_bp.get("")
def list_transactions_route():
    """All transactions, newest first, with customer, delivery and items."""
    try:
        result = transaction_service.list_transactions(repository=_repository())
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return jsonify({"error": "Internal server error"}), 500

    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value), 200


@transactions_bp.post("")
def create_transaction_route():
    """
    Create a PENDING transaction from a checkout cart.

    The submitted amountCents must equal catalog prices x quantities plus fees.
    """
    payload = request.get_json(silent=True) or {}

    try:
        result = transaction_service.create_transaction(payload, repository=_repository())
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500

    if not result.ok:
        return error_response(result.error)
    current_app.logger.info("Transaction %s created (%s)", result.value["id"], result.value["reference"])
    return jsonify(result.value), 201


@transactions_bp.patch("/<transaction_id>")
def update_transaction_route(transaction_id: str):
    """
    Update status / provider fields. Approving decrements stock once.
    """
    payload = request.get_json(silent=True) or {}

    try:
        result = transaction_service.update_transaction(transaction_id, payload, repository=_repository())
    except Exception:
        current_app.logger.exception("Failed to update transaction")
        return jsonify({"error": "Internal server error"}), 500

    if not result.ok:
        return error_response(result.error)
    current_app.logger.info("Transaction %s is now %s", transaction_id, result.value["status"])
    return jsonify(result.value), 200
