from flask import Blueprint, request, url_for, session, jsonify
from models.user_model import User
from utils.activity_logger import log_activity
from utils.jwt_utils import create_access_token
from werkzeug.security import check_password_hash

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    user = User.query.filter_by(username=username).first()

    if user and check_password_hash(user.password, password):
        session["user_id"] = user.id
        session["role"] = user.role.value
        log_activity(user.id, "login", {"username": username})
        return jsonify({
            "token": create_access_token(user.id, user.role.value),
            "role": user.role.value,
            "redirect": url_for("classes.list_classes"),
        })
    return jsonify({"msg": "Invalid credentials"}), 401


@auth_bp.route("/logout")
def logout():
    session.clear()
    return jsonify({"msg": "Logged out"})
