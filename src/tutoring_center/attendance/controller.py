from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import error_response, json_body, require_date, state_response, to_json
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    state = container.state

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    def list_attendance():
        student_id = request.args.get("student_id")
        records = [a for a in state.snapshot.attendance if not student_id or a.student_id == student_id]
        return jsonify(to_json(records))

    @app.route("/api/attendance", methods=["PUT"], endpoint="set_attendance")
    def set_attendance():
        data = json_body()
        try:
            lesson_date = require_date(data.get("date"), "Lesson date")
        except ValidationError as e:
            return error_response(str(e))
        return state_response(
            state,
            state.set_attendance(
                student_id=str(data.get("student_id", "")),
                lesson_date=lesson_date,
                status=str(data.get("status", "")),
                group_id=data.get("group_id") or None,
                grade=data.get("grade"),
            ),
        )

    @app.route("/api/attendance/<student_id>/<lesson_date>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(student_id: str, lesson_date: str):
        try:
            parsed = require_date(lesson_date, "Lesson date")
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.delete_attendance(student_id=student_id, lesson_date=parsed))
