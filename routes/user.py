"""Sign-in routes; the API token lives in the Flask session."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session


user_bp = Blueprint("kalasetu_user", __name__, url_prefix="/auth")


def _components() -> dict:
    return current_app.extensions["kalasetu_components"]


def _remember(payload: dict) -> None:
    session["token"] = payload["token"]
    session["user"] = payload["user"]


@user_bp.post("/login")
def login():
    data = request.get_json(silent=True) or request.form
    payload = _components()["auth"].login(
        email=data.get("email", ""),
        password=data.get("password", ""),
    )
    _remember(payload)
    return jsonify({"user": payload["user"], "redirect": payload["redirect"]})


@user_bp.post("/register")
def register():
    data = request.get_json(silent=True) or request.form
    payload = _components()["auth"].register(
        email=data.get("email", ""),
        password=data.get("password", ""),
        name=data.get("name", ""),
        role=data.get("role", "buyer"),
    )
    _remember(payload)
    return jsonify({"user": payload["user"], "redirect": payload["redirect"]}), 201


@user_bp.post("/logout")
def logout():
    session.pop("token", None)
    session.pop("user", None)
    return jsonify({"status": "ok"})


@user_bp.get("/me")
def me():
    auth = _components()["auth"]
    if auth.token_expired(session.get("token")):
        session.pop("token", None)
        session.pop("user", None)
        return jsonify({"user": None}), 401
    return jsonify({"user": session.get("user")})
