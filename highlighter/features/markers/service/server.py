import logging
from typing import Any

from flask import Flask, jsonify
from flask_cors import CORS

from highlighter.core.config.settings import Settings
from ..data.marker_file import MarkerFile
from ..data.obs_adapter import ObsRecorderClient, ObsRecordStateListener
from .capture import MarkerCaptureService
from .recorder import RecorderConnection

logger = logging.getLogger(__name__)


def create_app(capture: MarkerCaptureService) -> Flask:
    """
    POST /marker and GET /status. JSON everywhere, CORS from any origin.
    """
    app = Flask(__name__)
    CORS(app)

    @app.route("/marker", methods=["POST"])
    def marker() -> Any:
        result = capture.capture()
        return jsonify(result.to_dict()), 200

    @app.route("/status", methods=["GET"])
    def status() -> Any:
        return jsonify(capture.status()), 200

    @app.errorhandler(404)
    def not_found(_error) -> Any:
        return jsonify({"success": False, "message": "Not Found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error) -> Any:
        return jsonify({"success": False, "message": "Method Not Allowed"}), 405

    return app


def build_recorder(settings: Settings) -> RecorderConnection:
    def client_factory() -> ObsRecorderClient:
        return ObsRecorderClient(settings.OBS_HOST, settings.OBS_PORT, settings.OBS_PASSWORD)

    def listener_factory(on_change) -> ObsRecordStateListener:
        return ObsRecordStateListener(settings.OBS_HOST, settings.OBS_PORT, settings.OBS_PASSWORD, on_change)

    return RecorderConnection(
        client_factory=client_factory,
        reconnect_delay=settings.OBS_RECONNECT_SECONDS,
        listener_factory=listener_factory,
    )


def run_marker_server(settings: Settings) -> None:
    """
    Blocks serving HTTP until interrupted. The recorder connection is
    supervised in the background and closed on the way out.
    """
    marker_file = MarkerFile(settings.MARKER_FILE)
    recorder = build_recorder(settings)
    app = create_app(MarkerCaptureService(recorder, marker_file))

    recorder.start()
    logger.info(f"Marker endpoint: POST http://{settings.HTTP_HOST}:{settings.HTTP_PORT}/marker")
    logger.info(f"Status endpoint: GET http://{settings.HTTP_HOST}:{settings.HTTP_PORT}/status")
    logger.info(f"Marker file: {marker_file.path}")
    try:
        app.run(host=settings.HTTP_HOST, port=settings.HTTP_PORT, threaded=True)
    finally:
        logger.info("Shutting down marker server...")
        recorder.stop()
