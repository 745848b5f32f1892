from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/send-otp-first-time", methods=["POST"], endpoint="send_otp_first_time")
    def send_otp_first_time():
        email = json_body().get("email")
        container.otp_service.send_otp_first_time(email)
        return jsonify({"success": True, "message": f"OTP sent to {email}"})

    @app.route("/send-otp", methods=["POST"], endpoint="send_otp")
    def send_otp():
        email = json_body().get("email")
        container.otp_service.send_otp(email)
        return jsonify({"success": True, "message": f"OTP sent to {email}"})

    @app.route("/verify-otp", methods=["POST"], endpoint="verify_otp")
    def verify_otp():
        data = json_body()
        container.otp_service.verify_otp(data.get("email") or "", data.get("otp"))
        return jsonify({"success": True, "message": "OTP verified"})

    @app.route("/reset-password", methods=["POST"], endpoint="reset_password")
    def reset_password():
        data = json_body()
        container.otp_service.reset_password(data.get("email") or "", data.get("newPassword"))
        return jsonify({"success": True, "message": "Password reset successful"})
