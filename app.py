import os
import logging
from dotenv import load_dotenv
load_dotenv()
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from config import config_dict, ProdConfig
from models import db
from classes.exceptions import ExamError
from commands import register_commands
from routes.authentication import auth_bp
from routes.super_admin import admin_bp
from routes.examiners import examiner_bp
from routes.students import student_bp
from utils.logging_config import configure_logging

migrate = Migrate()
logger = logging.getLogger(__name__)


def create_app(config_name=None):
    app = Flask(__name__)

    env = config_name or os.environ.get("FLASK_ENV", "production")
    app.config.from_object(config_dict.get(env, ProdConfig))
    configure_logging(app.config["LOG_LEVEL"])

    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    db.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(examiner_bp, url_prefix='/api/examiner')
    app.register_blueprint(student_bp, url_prefix='/api/student')

    register_error_handlers(app)
    register_commands(app)

    @app.route('/')
    def home():
        return "Flight exams API"

    logger.info("App created (%s)", env)
    return app


def register_error_handlers(app):
    @app.errorhandler(ExamError)
    def handle_exam_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        db.session.rollback()
        logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": "Internal Server Error"}), 500


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False))
