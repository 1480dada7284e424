"""
HTTP entrypoint for the transcription pipeline.

Routes:

* ``GET /`` – the upload form.
* ``POST /process-video`` – accepts a ``video`` multipart field (MP4 or MKV),
  runs :func:`videoscribe.tasks.process_video` and returns
  ``{audioUrl, gcsUri, transcript, summary}``, or ``{error}`` on failure.
* ``GET /healthz`` – liveness probe.

Configuration is read and validated once by :func:`create_app`; see
:mod:`videoscribe.config` for the environment variables.  Serve the app with
``flask --app videoscribe.main:create_app run`` or
``gunicorn "videoscribe.main:create_app()"``.
"""

import json
import logging
import os
from typing import Optional

from flask import Flask, jsonify, render_template, request
from werkzeug.exceptions import RequestEntityTooLarge

from . import audio_processor, tasks
from .config import AppConfig, load_config, validate_config
from .exceptions import PipelineError

logging.basicConfig(level=logging.INFO, format="%(message)s")

ERROR_PREFIX = "Gagal memproses: "

# Room for the multipart envelope on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def _file_size(file_storage) -> int:
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def create_app(config: Optional[AppConfig] = None) -> Flask:
    if config is None:
        config = load_config()
    validate_config(config)
    audio_processor.use_binaries(
        config.transcoder.ffmpeg_path, config.transcoder.ffprobe_path
    )

    app = Flask(__name__)
    app.config["PIPELINE"] = config
    app.config["MAX_CONTENT_LENGTH"] = (
        config.upload.max_bytes + MULTIPART_OVERHEAD_BYTES
    )
    too_large_message = (
        f"Upload too large. Max allowed is {config.upload.max_bytes} bytes."
    )

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_: RequestEntityTooLarge):
        logging.info(json.dumps({"event": "rejected_upload", "reason": "too_large"}))
        return jsonify({"error": too_large_message}), 413

    @app.route("/", methods=["GET"])
    def upload_form():
        return render_template("upload.html")

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return jsonify({"status": "ok"})

    @app.route("/process-video", methods=["POST"])
    def process_video():
        video = request.files.get("video")
        if video is None or not video.filename:
            logging.info(
                json.dumps({"event": "rejected_upload", "reason": "missing_file"})
            )
            return jsonify({"error": "A video file is required."}), 422

        logging.info(
            json.dumps(
                {"event": "request", "file": video.filename, "mimetype": video.mimetype}
            )
        )
        if not audio_processor.is_supported_video(
            video.mimetype, config.upload.allowed_mimetypes
        ):
            logging.info(
                json.dumps(
                    {
                        "event": "rejected_upload",
                        "reason": "mimetype",
                        "mimetype": video.mimetype,
                    }
                )
            )
            return jsonify({"error": "The video must be an MP4 or MKV file."}), 422
        if _file_size(video) > config.upload.max_bytes:
            logging.info(
                json.dumps({"event": "rejected_upload", "reason": "too_large"})
            )
            return jsonify({"error": too_large_message}), 413

        token = tasks.new_token()
        video_path = tasks.video_path_for(
            config, token, audio_processor.extension_for(video.mimetype)
        )
        try:
            os.makedirs(os.path.dirname(video_path), exist_ok=True)
            video.save(video_path)
            result = tasks.process_video(config, video_path, token)
        except PipelineError as exc:
            logging.error(
                json.dumps(
                    {"event": "pipeline_failed", "token": token, "error": str(exc)}
                )
            )
            return jsonify({"error": f"{ERROR_PREFIX}{exc}"}), 500
        except Exception as exc:
            logging.exception("Error in /process-video")
            audio_processor.cleanup_temp_file(video_path)
            return jsonify({"error": f"{ERROR_PREFIX}{exc}"}), 500

        logging.info(
            json.dumps(
                {
                    "event": "pipeline_complete",
                    "token": token,
                    "gcs_uri": result.gcs_uri,
                }
            )
        )
        return jsonify(result.as_response()), 200

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port)
