from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import error_response, to_json
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    state = container.state

    @app.route("/api/reports/period", methods=["GET"], endpoint="period_report")
    def period_report():
        try:
            report = state.period_report(request.args.get("period", "month"))
        except ValidationError as e:
            return error_response(str(e))
        return jsonify(to_json(report))

    @app.route("/api/students/<student_id>/history", methods=["GET"], endpoint="balance_history")
    def balance_history(student_id: str):
        if state.snapshot.student(student_id) is None:
            return error_response("Student not found", 404)
        return jsonify(to_json(state.balance_history(student_id)))

    @app.route("/api/students/<student_id>/financials", methods=["GET"], endpoint="student_financials")
    def student_financials(student_id: str):
        financials = state.student_financials(student_id)
        if financials is None:
            return error_response("Student not found", 404)
        return jsonify(to_json(financials))

    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    def dashboard():
        return jsonify(to_json(state.dashboard_summary()))
