# run.py
import logging

from src.config import Config
from src.main import app

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info(
        "Starting %s on %s:%s with the %s store",
        Config.APP_NAME,
        Config.FLASK_RUN_HOST,
        Config.FLASK_RUN_PORT,
        Config.STORE_BACKEND,
    )
    app.run(
        debug=Config.DEBUG,
        host=Config.FLASK_RUN_HOST,
        port=Config.FLASK_RUN_PORT,
    )
