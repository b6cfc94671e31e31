import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_mail import Mail
from flask_migrate import Migrate
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

# Load environment variables before the config class reads them
load_dotenv()

from .config import Config
from .models import db

logging.basicConfig(level=Config.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_object(Config)

CORS(app, resources={
    r"/api/*": {
        "origins": [app.config["FRONTEND_URL"], "http://localhost:3000"],
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Authorization", "Content-Type", "X-Cron-Secret"],
        "supports_credentials": True
    }
})

db.init_app(app)
migrate = Migrate(app, db)
mail = Mail(app)


@app.errorhandler(HTTPException)
def handle_http_error(e):
    return jsonify({"message": e.description}), e.code


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.exception(f"Unhandled error: {str(e)}")
    return jsonify({"message": "Internal server error"}), 500


from . import auth, activities, logs, analysis, notifications, cli  # noqa: E402,F401
