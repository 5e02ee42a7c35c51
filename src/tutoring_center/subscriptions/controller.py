from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, state_response, to_json
from ..container import Container

PLAN_FIELDS = ("name", "price", "discount", "lesson_count")


def register(app: Flask, container: Container) -> None:
    state = container.state

    @app.route("/api/plans", methods=["GET"], endpoint="list_plans")
    def list_plans():
        return jsonify(to_json(state.snapshot.plans))

    @app.route("/api/plans", methods=["POST"], endpoint="add_plan")
    def add_plan():
        data = json_body()
        fields = {f: data.get(f) for f in PLAN_FIELDS}
        fields["discount"] = data.get("discount", 0)
        return state_response(state, state.add_plan(**fields, is_default=bool(data.get("is_default"))))

    @app.route("/api/plans/<plan_id>", methods=["PUT"], endpoint="update_plan")
    def update_plan(plan_id: str):
        data = json_body()
        fields = {f: data.get(f) for f in PLAN_FIELDS}
        fields["discount"] = data.get("discount", 0)
        return state_response(state, state.update_plan(plan_id, **fields))

    @app.route("/api/plans/<plan_id>", methods=["DELETE"], endpoint="delete_plan")
    def delete_plan(plan_id: str):
        return state_response(state, state.delete_plan(plan_id))

    @app.route("/api/plans/<plan_id>/default", methods=["POST"], endpoint="set_default_plan")
    def set_default_plan(plan_id: str):
        return state_response(state, state.set_default_plan(plan_id))

    @app.route("/api/subscriptions/<subscription_id>", methods=["PATCH"], endpoint="update_subscription")
    def update_subscription(subscription_id: str):
        group_id = json_body().get("assigned_group_id") or None
        return state_response(state, state.update_subscription(subscription_id, assigned_group_id=group_id))
