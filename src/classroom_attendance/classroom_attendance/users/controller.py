from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import bearer_required, ensure_actor, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth_required = bearer_required(container.token_service)

    @app.route("/", methods=["GET"], endpoint="health")
    def health():
        return "Classroom attendance backend is running"

    @app.route("/register", methods=["POST"], endpoint="register")
    def register_account():
        data = json_body()
        container.auth_service.register(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("selected_role") or data.get("role"),
            registration_number=data.get("registration_number"),
        )
        return jsonify({"message": "Registration successful"}), 201

    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        result = container.auth_service.authenticate(data.get("email"), data.get("password"), data.get("role"))
        return jsonify(
            {
                "login": "success",
                "access_token": result.access_token,
                "refresh_token": result.refresh_token,
                "name": result.name,
            }
        )

    @app.route("/refresh", methods=["POST"], endpoint="refresh")
    def refresh():
        data = json_body()
        access_token = container.auth_service.refresh(data.get("refreshToken") or data.get("refresh_token"))
        return jsonify({"access_token": access_token})

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        # Tokens are stateless; the client discards them.
        return jsonify({"message": "Logged out successfully"})

    @app.route("/user/<email>", methods=["GET"], endpoint="get_user")
    @auth_required
    def get_user(email: str):
        ensure_actor(email)
        return jsonify(container.user_service.get_user(email).to_public_dict())

    @app.route("/user/<email>", methods=["PUT"], endpoint="update_user")
    @auth_required
    def update_user(email: str):
        ensure_actor(email)
        user = container.user_service.update_user(email, json_body())
        return jsonify(user.to_public_dict())
