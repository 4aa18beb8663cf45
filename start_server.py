"""
Automatic Server Starter for the Student Feedback Portal
This script initialises the database, detects the local IP and starts the server.
"""

import os
import sys
import socket
import logging

from app import asgi_app
from portal.errors import DuplicateRecord
from portal.models import init_db
from portal.services.student_service import create_admin
from config import UPLOAD_FOLDER

logger = logging.getLogger(__name__)


def get_local_ip():
    """Get the local IP address of the machine."""
    try:
        # Create a socket to get the local IP
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.connect(("8.8.8.8", 80))
        local_ip = s.getsockname()[0]
        s.close()
        return local_ip
    except OSError as e:
        logger.error(f"Error getting local IP: {e}")
        return "127.0.0.1"


def check_port_available(host, port):
    """Check if a port is available."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        sock.close()
        return True
    except socket.error:
        return False


def bootstrap_admin():
    """Create the administrator from ADMIN_EMAIL / ADMIN_PASSWORD if set."""
    email = os.environ.get('ADMIN_EMAIL')
    password = os.environ.get('ADMIN_PASSWORD')
    if not email or not password:
        return
    try:
        create_admin(email, password, first_name='Portal', last_name='Admin')
    except DuplicateRecord:
        logger.info(f"Admin {email} already exists")


def start_server():
    """Start the portal API with automatic configuration."""
    logger.info("=" * 60)
    logger.info("Student Feedback Portal - Starting Server")
    logger.info("=" * 60)

    init_db()
    bootstrap_admin()
    os.makedirs(UPLOAD_FOLDER, exist_ok=True)

    # Get local IP
    host_ip = get_local_ip()
    logger.info(f"Detected Local IP: {host_ip}")

    # Determine the best port to use
    ports_to_try = [5000, 8080, 8000, 3000, 5001]
    selected_port = None

    for port in ports_to_try:
        if check_port_available(host_ip, port):
            selected_port = port
            logger.info(f"Port {port} is available")
            break
        else:
            logger.warning(f"Port {port} is already in use")

    if not selected_port:
        logger.error("No available ports found. Please close other applications.")
        sys.exit(1)

    logger.info(f"Selected Port: {selected_port}")
    logger.info("=" * 60)
    logger.info(f"API will be accessible at:")
    logger.info(f"  Local:   http://localhost:{selected_port}/api")
    logger.info(f"  Network: http://{host_ip}:{selected_port}/api")
    logger.info("=" * 60)
    logger.info("Press Ctrl+C to stop the server")
    logger.info("=" * 60)

    import uvicorn

    try:
        uvicorn.run(
            asgi_app,
            host=host_ip,
            port=selected_port,
            log_config=None
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    start_server()
