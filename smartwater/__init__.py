import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flasgger import Swagger

db = SQLAlchemy()
migrate = Migrate()
swagger = Swagger()

def create_app(config_class=None):
    """Application factory pattern"""
    if config_class is None:
        from config import Config
        config_class = Config

    app = Flask(__name__)
    app.config.from_object(config_class)
    logging.getLogger(__name__).setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Swagger configuration must be in place before init_app reads it
    app.config['SWAGGER'] = {
        'title': 'SmartWater Pools API Documentation',
        'uiversion': 3,
        'openapi': '3.0.0',
        'info': {
            'title': 'SmartWater Pools API',
            'description': 'Pool service management API: clients, projects, maintenance, repairs, business and communications',
            'version': '1.0.0',
        },
        'components': {
            'securitySchemes': {
                'Bearer': {
                    'type': 'http',
                    'scheme': 'bearer',
                    'bearerFormat': 'JWT',
                    'description': 'Enter JWT token'
                }
            }
        },
        'security': [
            {
                'Bearer': []
            }
        ]
    }
    swagger.init_app(app)

    # Configure CORS with allowed origins from config
    cors_origins = app.config.get('CORS_ALLOWED_ORIGINS', ['*'])
    CORS(app, resources={r"/api/*": {
        "origins": "*" if '*' in cors_origins else cors_origins,
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        "allow_headers": ["Content-Type", "Authorization"],
        "expose_headers": ["Content-Type"],
        "supports_credentials": True
    }})

    from smartwater.utils.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints - one per resource
    from smartwater.routes import (
        auth, clients, projects, phases, documents, work_orders,
        maintenances, repairs, business, communications, emails, dashboard, misc
    )

    app.register_blueprint(auth.bp, url_prefix='/api/auth')
    app.register_blueprint(auth.login_alias_bp, url_prefix='/api')
    app.register_blueprint(clients.bp, url_prefix='/api/clients')
    app.register_blueprint(projects.bp, url_prefix='/api/projects')
    app.register_blueprint(phases.bp, url_prefix='/api')
    app.register_blueprint(documents.bp, url_prefix='/api')
    app.register_blueprint(work_orders.bp, url_prefix='/api/work-orders')
    app.register_blueprint(maintenances.bp, url_prefix='/api/maintenances')
    app.register_blueprint(repairs.bp, url_prefix='/api/repairs')
    app.register_blueprint(business.bp, url_prefix='/api/business')
    app.register_blueprint(communications.bp, url_prefix='/api')
    app.register_blueprint(emails.bp, url_prefix='/api/emails')
    app.register_blueprint(dashboard.bp, url_prefix='/api/dashboard')
    app.register_blueprint(misc.bp, url_prefix='/api')

    return app
