# marketplace/main.py
import uvicorn

from marketplace.api import create_app
from marketplace.data.database import init_db
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

init_db()
logger.info("Database tables ready")

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
