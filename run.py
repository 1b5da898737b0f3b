from dotenv import load_dotenv
load_dotenv()  # Load .env file

from smartwater import create_app, db
from config import config
import os
import logging

app = create_app(config.get(os.environ.get('FLASK_ENV', 'development')))

# Configure logging
logging.basicConfig(
    level=app.config['LOG_LEVEL'],
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@app.shell_context_processor
def make_shell_context():
    return {'db': db, 'app': app}

if __name__ == '__main__':
    with app.app_context():
        try:
            from smartwater.utils.db_init import initialize_database
            logger.info("Verifying database initialization...")
            if initialize_database():
                logger.info("Database ready - starting SmartWater API")
            else:
                logger.warning("Database initialization had warnings - starting SmartWater API anyway")
        except Exception as e:
            logger.error(f"Database initialization error: {e}")
            logger.info("Starting SmartWater API anyway (database may need manual setup)")

    port = int(os.environ.get('PORT', 5000))
    logger.info(f"SmartWater API starting on http://0.0.0.0:{port}")
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=port)
