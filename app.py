# app.py
from __future__ import annotations
import logging
from flask import Flask, jsonify

from blueprints import api_bp
from config import FLASK_PORT, IMPORT_MAX_UPLOAD_MB, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = IMPORT_MAX_UPLOAD_MB * 1024 * 1024
app.register_blueprint(api_bp)


@app.errorhandler(413)
def too_large(_e):
    return jsonify({"error": f"File exceeds {IMPORT_MAX_UPLOAD_MB} MB."}), 413


@app.get("/health")
def health():
    return jsonify({"ok": True})


if __name__ == "__main__":
    app.run(
        debug=True,
        host="0.0.0.0",
        port=FLASK_PORT
    )
