from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_context, json_body
from ..common.serialization import to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/profile", methods=["GET"], endpoint="profile")
    def profile():
        user = container.profile_service.get_profile(current_context())
        data = to_json(user)
        data.pop("push_token", None)
        return jsonify(data)

    @app.route("/api/profile/push-token", methods=["PUT"], endpoint="register_push_token")
    def register_push_token():
        data = json_body()
        container.profile_service.register_push_token(current_context(), push_token=data.get("push_token"))
        return "", 204
