from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import error_response, json_body, require_date, state_response, to_json
from ..container import Container
from ..core.exceptions import ValidationError
from .model import NewStudent

PROFILE_FIELDS = ("name", "parent_name", "parent_phone1", "parent_phone2", "parent_email")


def _new_student(data: dict) -> NewStudent:
    birth_date = data.get("birth_date")
    return NewStudent(
        name=str(data.get("name", "")),
        group_ids=tuple(data.get("group_ids") or ()),
        birth_date=require_date(birth_date, "Birth date") if birth_date else None,
        **{f: str(data.get(f) or "") for f in PROFILE_FIELDS if f != "name"},
    )


def register(app: Flask, container: Container) -> None:
    state = container.state

    @app.route("/api/students", methods=["GET"], endpoint="list_students")
    def list_students():
        return jsonify(to_json(state.snapshot.students))

    @app.route("/api/students", methods=["POST"], endpoint="add_students")
    def add_students():
        data = json_body()
        try:
            batch = [_new_student(item) for item in data.get("students", [data])]
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.add_students(batch))

    @app.route("/api/students/<student_id>", methods=["PATCH"], endpoint="update_student")
    def update_student(student_id: str):
        data = json_body()
        changes = {f: data[f] for f in PROFILE_FIELDS if f in data}
        try:
            if "birth_date" in data:
                changes["birth_date"] = require_date(data["birth_date"], "Birth date") if data["birth_date"] else None
        except ValidationError as e:
            return error_response(str(e))
        if "group_ids" in data:
            changes["group_ids"] = tuple(data["group_ids"] or ())
        return state_response(state, state.update_student(student_id, **changes))

    @app.route("/api/students/archive", methods=["POST"], endpoint="archive_students")
    def archive_students():
        return state_response(state, state.archive_students(json_body().get("ids", [])))

    @app.route("/api/students/restore", methods=["POST"], endpoint="restore_students")
    def restore_students():
        return state_response(state, state.restore_students(json_body().get("ids", [])))

    @app.route("/api/students/delete", methods=["POST"], endpoint="delete_students")
    def delete_students():
        return state_response(state, state.delete_students(json_body().get("ids", [])))

    @app.route("/api/students/reminders", methods=["POST"], endpoint="send_payment_reminders")
    def send_payment_reminders():
        try:
            due_date = require_date(json_body().get("due_date"), "Due date")
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.send_payment_reminders(due_date=due_date))

    @app.route("/api/groups", methods=["GET"], endpoint="list_groups")
    def list_groups():
        return jsonify(to_json(state.snapshot.groups))

    @app.route("/api/groups", methods=["POST"], endpoint="add_group")
    def add_group():
        return state_response(state, state.add_group(str(json_body().get("name", ""))))

    @app.route("/api/groups/<group_id>", methods=["PATCH"], endpoint="rename_group")
    def rename_group(group_id: str):
        return state_response(state, state.rename_group(group_id, str(json_body().get("name", ""))))

    @app.route("/api/groups/<group_id>", methods=["DELETE"], endpoint="delete_group")
    def delete_group(group_id: str):
        return state_response(state, state.delete_group(group_id))
