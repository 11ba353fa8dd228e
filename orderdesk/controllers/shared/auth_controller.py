from flask import request, jsonify
from flask_jwt_extended import (
    create_access_token,
    get_jwt_identity,
    set_access_cookies,
    unset_jwt_cookies,
)
from sqlalchemy import text
from orderdesk.extensions import bcrypt, db
from orderdesk.models import User
from orderdesk.errors import Unauthorized


def login():
    data = request.get_json(silent=True) or {}

    identifier = data.get("username") or data.get("email")
    password = data.get("password")

    if not identifier or not password:
        return jsonify({"error": "Missing credentials"}), 400

    if "@" in identifier:
        user = User.query.filter_by(email=identifier).first()
    else:
        user = User.query.filter_by(username=identifier).first()

    if user and user.active and bcrypt.check_password_hash(user.password_hash, password):
        access_token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role},
        )
        response = jsonify({"token": access_token, "user": user.to_dict()})
        set_access_cookies(response, access_token)
        return response, 200

    raise Unauthorized("Invalid credentials")


def logout():
    response = jsonify({"message": "Logged out"})
    unset_jwt_cookies(response)
    return response, 200


def me():
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict())


def current_user():
    uid = get_jwt_identity()
    return db.session.get(User, int(uid)) if uid else None


def check_health():
    health_status = {"status": "healthy", "services": {"database": "unhealthy"}}

    try:
        db.session.execute(text("SELECT 1"))
        health_status["services"]["database"] = "healthy"
        return jsonify(health_status), 200
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["error"] = str(e)
        return jsonify(health_status), 500
