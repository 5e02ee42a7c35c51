from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import error_response, json_body, optional_datetime, require_datetime, state_response, to_json
from ..container import Container
from ..core.constants import DEFAULT_UPCOMING_EVENTS
from ..core.exceptions import ValidationError


def _event_fields(data: dict) -> dict:
    return {
        "title": str(data.get("title", "")),
        "start": require_datetime(data.get("start"), "Start"),
        "end": require_datetime(data.get("end"), "End"),
        "group_id": data.get("group_id") or None,
        "is_recurring": bool(data.get("is_recurring")),
    }


def register(app: Flask, container: Container) -> None:
    state = container.state

    @app.route("/api/events", methods=["GET"], endpoint="visible_events")
    def visible_events():
        return jsonify(to_json(state.visible_events))

    @app.route("/api/events/upcoming", methods=["GET"], endpoint="upcoming_events")
    def upcoming_events():
        limit = request.args.get("limit", DEFAULT_UPCOMING_EVENTS, type=int)
        return jsonify(to_json(state.upcoming_events(limit=limit)))

    @app.route("/api/events", methods=["POST"], endpoint="add_event")
    def add_event():
        try:
            fields = _event_fields(json_body())
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.add_event(**fields))

    @app.route("/api/events/<event_id>", methods=["PUT"], endpoint="update_event")
    def update_event(event_id: str):
        try:
            fields = _event_fields(json_body())
        except ValidationError as e:
            return error_response(str(e))
        return state_response(state, state.update_event(event_id, **fields))

    @app.route("/api/events/<event_id>", methods=["DELETE"], endpoint="delete_event")
    def delete_event(event_id: str):
        return state_response(state, state.delete_event(event_id))

    @app.route("/api/events/<event_id>/occurrences/<occurrence_key>", methods=["PUT"], endpoint="override_occurrence")
    def override_occurrence(event_id: str, occurrence_key: str):
        data = json_body()
        try:
            fields = _event_fields(data)
            previous_start = optional_datetime(data.get("previous_start"), "Previous start")
        except ValidationError as e:
            return error_response(str(e))
        fields.pop("is_recurring")
        return state_response(
            state,
            state.override_occurrence(
                event_id=event_id,
                occurrence_key=occurrence_key,
                previous_start=previous_start,
                **fields,
            ),
        )

    @app.route("/api/events/<event_id>/occurrences/<occurrence_key>", methods=["DELETE"], endpoint="delete_occurrence")
    def delete_occurrence(event_id: str, occurrence_key: str):
        return state_response(state, state.delete_occurrence(event_id=event_id, occurrence_key=occurrence_key))
