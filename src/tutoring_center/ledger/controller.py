from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import error_response, json_body, state_response, to_json
from ..container import Container
from ..core.enums import RefundMethod


def register(app: Flask, container: Container) -> None:
    state = container.state

    @app.route("/api/subscriptions", methods=["GET"], endpoint="list_subscriptions")
    def list_subscriptions():
        student_id = request.args.get("student_id")
        subs = [s for s in state.snapshot.subscriptions if not student_id or s.student_id == student_id]
        return jsonify(to_json(subs))

    @app.route("/api/subscriptions", methods=["POST"], endpoint="sell_subscription")
    def sell_subscription():
        data = json_body()
        return state_response(
            state,
            state.add_subscription(
                student_id=str(data.get("student_id", "")),
                plan_id=str(data.get("plan_id", "")),
                price_paid=data.get("price_paid"),
                lessons_total=data.get("lessons_total"),
                assigned_group_id=data.get("assigned_group_id") or None,
            ),
        )

    @app.route("/api/subscriptions/<subscription_id>/cancel", methods=["POST"], endpoint="cancel_subscription")
    def cancel_subscription(subscription_id: str):
        method = json_body().get("refund_method", RefundMethod.CREDIT.value)
        if method == RefundMethod.CREDIT.value:
            return state_response(state, state.cancel_subscription_refund_to_credit(subscription_id))
        if method == RefundMethod.CASH.value:
            return state_response(state, state.cancel_subscription_cash_refund(subscription_id))
        return error_response(f"Unknown refund method: {method!r}")

    @app.route("/api/transactions", methods=["GET"], endpoint="list_transactions")
    def list_transactions():
        student_id = request.args.get("student_id")
        txs = [t for t in state.snapshot.transactions if not student_id or t.student_id == student_id]
        return jsonify(to_json(txs))

    @app.route("/api/transactions", methods=["POST"], endpoint="add_transaction")
    def add_transaction():
        data = json_body()
        return state_response(
            state,
            state.add_transaction(
                student_id=str(data.get("student_id", "")),
                tx_type=str(data.get("type", "")),
                amount=data.get("amount"),
                description=str(data.get("description") or ""),
                subscription_id=data.get("subscription_id") or None,
                refund_method=data.get("refund_method") or None,
            ),
        )

    @app.route("/api/financial-data/clear", methods=["POST"], endpoint="clear_financial_data")
    def clear_financial_data():
        confirmed = json_body().get("confirm") is True
        return state_response(state, state.clear_all_financial_data(confirmed=confirmed))
