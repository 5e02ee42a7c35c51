from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import error_response, json_body, optional_datetime, state_response, to_json
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    state = container.state

    def _fields(data: dict) -> dict:
        return {
            "amount": data.get("amount"),
            "description": str(data.get("description") or ""),
            "spent_at": optional_datetime(data.get("date"), "Date"),
        }

    @app.route("/api/expenses", methods=["GET"], endpoint="list_expenses")
    def list_expenses():
        return jsonify(to_json(state.snapshot.expenses))

    @app.route("/api/expenses", methods=["POST"], endpoint="add_expense")
    def add_expense():
        try:
            fields = _fields(json_body())
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.add_expense(**fields))

    @app.route("/api/expenses/<expense_id>", methods=["PUT"], endpoint="update_expense")
    def update_expense(expense_id: str):
        try:
            fields = _fields(json_body())
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.update_expense(expense_id, **fields))

    @app.route("/api/expenses/<expense_id>", methods=["DELETE"], endpoint="delete_expense")
    def delete_expense(expense_id: str):
        return state_response(state, state.delete_expense(expense_id))
