"""
Starts the playback host: archive proxy plus ephemeral document serving.
Configured through the environment / .env (see playback/config.py).
"""

from playback.config import ARCHIVE_BASE_URL, HOST, PORT
from playback.logger import logger
from ui.app import app


def main():
    logger.info(f"Playback host on http://{HOST}:{PORT}, archive backend {ARCHIVE_BASE_URL}")
    app.run(host=HOST, port=PORT, threaded=True)


if __name__ == "__main__":
    main()
