import logging
import os
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from flask_cors import CORS

from .config import MergeConfig
from .merge_engine import MergeError, MergePipeline, MergeRequest, ValidationError
from .merge_engine.streamer import build_response


logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 1 * 1024 * 1024  # 1MB

app = Flask(__name__)

# Configure CORS
allowed_origins = ["http://localhost:3000"]
if os.environ.get("CORS_ORIGINS"):
    additional_origins = [origin.strip() for origin in os.environ.get("CORS_ORIGINS", "").split(",")]
    allowed_origins.extend(o for o in additional_origins if o)

CORS(
    app,
    origins=allowed_origins,
    allow_headers=["Content-Type"],
    methods=["GET", "POST", "OPTIONS"],
    expose_headers=["Content-Disposition"],
)

app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("MAX_CONTENT_LENGTH", MAX_BODY_SIZE))
app.config["MERGE_CONFIG"] = MergeConfig.from_env()


def get_config() -> MergeConfig:
    return app.config["MERGE_CONFIG"]


@app.route("/merge", methods=["POST"])
def merge_clips():
    """Merge the JSON list of clip URLs in ``clips`` and stream back one mp4."""
    config = get_config()
    try:
        merge_request = MergeRequest.from_payload(
            request.get_json(silent=True), config.min_clips, config.max_clips
        )
    except ValidationError as e:
        logger.info("[MERGE] Rejected request: %s", e)
        return jsonify({"error": e.public_message}), 400

    pipeline = MergePipeline(config)
    try:
        artifact = pipeline.prepare(merge_request)
    except MergeError as e:
        return jsonify({"error": e.public_message}), e.status_code

    resp = build_response(artifact, pipeline.stream())
    # Covers a response that is closed before its body is ever iterated.
    resp.call_on_close(pipeline.close)
    return resp


@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint"""
    return jsonify({"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}), 200


@app.errorhandler(413)
def too_large(e):
    return (
        jsonify({"error": "Request body too large", "max_size_mb": app.config["MAX_CONTENT_LENGTH"] / (1024 * 1024)}),
        413,
    )


@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Endpoint not found"}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(500)
def internal_error(e):
    return jsonify({"error": "Internal server error"}), 500


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Get configuration from environment variables
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 3000))
    debug = os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    config = get_config()
    logger.info("Video merge service running on http://%s:%d (mode=%s, archive=%s)", host, port, config.mode, config.archive)
    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
