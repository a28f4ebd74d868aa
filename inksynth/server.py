import json
import logging

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Settings
from .errors import GenerationError, InputValidationError, UnknownRequestType
from .gemini import GenerationClient, create_genai_client
from .models import parse_request
from .service import GenerationService

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected server error occurred."


def create_app(settings: Settings | None = None, generation_client: GenerationClient | None = None) -> Flask:
    """Build the Flask app.

    Settings are read from the environment when not given; a missing API key
    raises ConfigurationError here, before the app ever serves a request.
    """
    if settings is None:
        settings = Settings.from_env()
    if generation_client is None:
        generation_client = GenerationClient(create_genai_client(settings), settings.model)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length
    service = GenerationService(generation_client)

    # -----------------------------------------------------------------------
    # CORS
    # -----------------------------------------------------------------------

    # Registered before CORS(app): after_request hooks run in reverse order, so
    # this sees the response after flask-cors has (or has not) echoed the origin.
    # flask-cors only answers requests whose Origin is on the allow-list
    # (always_send=False); a missing Origin also falls through to here.
    @app.after_request
    def apply_cors_defaults(response):
        # Unknown origins get the canonical origin, never "*", so other sites
        # cannot spend our Gemini quota from a browser.
        if "Access-Control-Allow-Origin" not in response.headers:
            response.headers["Access-Control-Allow-Origin"] = settings.canonical_origin
        response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        response.headers["Access-Control-Max-Age"] = str(settings.cors_max_age)
        response.vary.add("Origin")
        return response

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}},
        methods=["POST", "OPTIONS"],
        always_send=False,
        allow_headers=["Content-Type"],
        max_age=settings.cors_max_age,
    )

    # -----------------------------------------------------------------------
    # Error mapping
    # -----------------------------------------------------------------------

    @app.errorhandler(InputValidationError)
    def handle_validation_error(e):
        logger.warning("[API] Rejected input (%s): %s", e.field, e.message)
        return jsonify({"error": e.message}), 400

    @app.errorhandler(UnknownRequestType)
    def handle_unknown_type(e):
        logger.warning("[API] Unknown generation type: %r", e.request_type)
        return jsonify({"error": e.message}), 400

    @app.errorhandler(GenerationError)
    def handle_generation_error(e):
        logger.error("[API] Generation failed: %s", e.message)
        message = e.message if settings.expose_errors else e.public_message
        return jsonify({"error": message}), 500

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        response = e.get_response()
        response.data = json.dumps({"error": e.name})
        response.content_type = "application/json"
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("[API] Unhandled error: %s", e)
        message = (str(e) or GENERIC_ERROR) if settings.expose_errors else GENERIC_ERROR
        return jsonify({"error": message}), 500

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------

    @app.route("/api/generate", methods=["POST"])
    def api_generate():
        """Run one simulator / designer / multi-tattoo generation."""
        body = request.get_json(silent=True)
        generation_request = parse_request(body)
        logger.info("[API] %s request from %s", generation_request.kind,
                    request.headers.get("Origin", "unknown origin"))
        image = service.run(generation_request)
        return jsonify({"image": image})

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "model": settings.model})

    return app
