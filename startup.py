import os
import sys
import uvicorn
import logging
import traceback

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Add the src directory to Python path
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

logger.info("=" * 60)
logger.info("Clinic-Scribe Startup")
logger.info("=" * 60)
logger.info(f"Python version: {sys.version.split()[0]}")

# Log critical environment variables (without exposing secrets)
logger.info("Environment Configuration:")
logger.info(f"  PORT: {os.environ.get('PORT', '8000')}")
logger.info(f"  APP_ENV: {os.environ.get('APP_ENV', 'not set')}")
logger.info(f"  STORE: {os.environ.get('STORE', 'mongo')}")
logger.info(f"  TRANSCRIPTION_PROVIDER: {os.environ.get('TRANSCRIPTION_PROVIDER', 'http')}")
logger.info(f"  TRANSCRIPTION_ENDPOINT_URL: {os.environ.get('TRANSCRIPTION_ENDPOINT_URL', 'not set')}")
logger.info(f"  OPENAI_API_KEY: {'set' if os.environ.get('OPENAI_API_KEY') else 'not set'}")
logger.info(f"  MONGO_URI: {'set' if os.environ.get('MONGO_URI') else 'not set'}")

if __name__ == "__main__":
    try:
        from clinicscribe.core.config import get_settings
        settings = get_settings()
        port = int(os.environ.get("PORT", settings.port))
        host = os.environ.get("HOST", settings.host)

        try:
            from clinicscribe.app import app  # noqa: F401
        except Exception as import_error:
            logger.error(f"Failed to import clinicscribe.app: {import_error}")
            logger.error(traceback.format_exc())
            sys.exit(1)

        logger.info(f"Starting uvicorn server on {host}:{port}...")
        # Live capture sessions are held in process memory, so one worker only
        uvicorn.run(
            "clinicscribe.app:app",
            host=host,
            port=port,
            workers=1,
            log_level=settings.logging.level.lower(),
            access_log=True,
            timeout_keep_alive=75,
            timeout_graceful_shutdown=30,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down due to keyboard interrupt")
        sys.exit(0)
    except Exception as e:
        logger.error(f"CRITICAL: Failed to start application: {e}")
        logger.error(traceback.format_exc())
        sys.exit(1)
