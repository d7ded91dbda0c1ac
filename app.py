from flask import Flask, jsonify
from config import get_config
from extensions import db, migrate, bcrypt
import logging
from logging.handlers import RotatingFileHandler
import os

def create_app(config_name=None):
    app = Flask(__name__)

    # Get configuration based on environment or passed parameter
    if config_name:
        from config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)

    # Import models to register them with SQLAlchemy
    from models import User, Password, PasswordReset, EmailConfirmation, Coffee

    # External API clients live for the lifetime of the process
    from services.email_service import EmailSender
    from services.avatar_storage import AvatarStorage
    app.extensions['email_sender'] = EmailSender.from_config(app.config)
    app.extensions['avatar_storage'] = AvatarStorage.from_config(app.config)

    # Setup logging
    if not app.debug and not app.testing:
        if app.config['LOG_TO_STDOUT']:
            handler = logging.StreamHandler()
        else:
            if not os.path.exists('logs'):
                os.mkdir('logs')
            handler = RotatingFileHandler('logs/coffee_diary.log', maxBytes=10240, backupCount=10)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'))
        level = getattr(logging, app.config['LOG_LEVEL'], logging.INFO)
        handler.setLevel(level)
        app.logger.addHandler(handler)
        app.logger.setLevel(level)
        app.logger.info('Coffee Diary startup')

    # Register blueprints
    from routes.auth import auth_bp
    from routes.coffees import coffees_bp
    from routes.avatars import avatars_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(coffees_bp, url_prefix='/coffees')
    app.register_blueprint(avatars_bp, url_prefix='/avatars')

    # Error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500

    return app
