"""WSGI entry point: ``gunicorn -w 4 app:app`` or ``python app.py`` for local runs."""

import os

from src.classroom_attendance.classroom_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
