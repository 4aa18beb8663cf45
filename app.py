import os
import logging
from rich.logging import RichHandler
from flask import Flask, jsonify
from flask_cors import CORS
import matplotlib
matplotlib.use("Agg")

from portal.errors import register_error_handlers
from portal.models import init_db
from routes.auth_routes import auth_bp
from routes.admin_routes import admin_bp
from routes.student_routes import student_bp
from routes.report_routes import report_bp

from config import (
    CORS_ORIGINS,
    DATABASE_PATH,
    MAX_FILE_SIZE,
    SECRET_KEY,
    UPLOAD_FOLDER,
)
from asgiref.wsgi import WsgiToAsgi

# Configure rich logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)

logging.root.handlers = [
    RichHandler(rich_tracebacks=True, show_path=True, tracebacks_show_locals=False,
                log_time_format="[%b %d, %Y, %I:%M:%S %p]",
                )
]
logger = logging.getLogger("feedback_portal")


def create_app(test_config=None):
    """Build the Flask application; ``test_config`` overrides config values."""
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=SECRET_KEY,
        DATABASE_PATH=DATABASE_PATH,
        MAX_CONTENT_LENGTH=MAX_FILE_SIZE,
        UPLOAD_FOLDER=UPLOAD_FOLDER,
    )
    if test_config:
        app.config.update(test_config)

    CORS(app, origins=CORS_ORIGINS)

    # Register blueprints
    for blueprint in (auth_bp, admin_bp, student_bp, report_bp):
        app.register_blueprint(blueprint, url_prefix='/api')
    register_error_handlers(app)

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok'})

    return app


app = create_app()
asgi_app = WsgiToAsgi(app)


if __name__ == "__main__":
    # Initialize database
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")

    # Ensure upload folder exists
    os.makedirs(UPLOAD_FOLDER, exist_ok=True)

    import uvicorn
    import socket
    host_ip = socket.gethostbyname(socket.gethostname())
    logger.info(f"Starting server on {host_ip}:5000")
    uvicorn.run(asgi_app, host=host_ip, port=5000, log_config=None)
