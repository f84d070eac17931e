import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _env_flag(name, default='0'):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration for the newsletter service.
    Deployments override these via environment variables or a .env file.
    """
    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths
    NEWSLETTER_DB = os.getenv('NEWSLETTER_DB', os.path.join(DB_DIR, 'newsletter.db'))
    LOG_DB = os.getenv('LOG_DB', os.path.join(DB_DIR, 'app_logs.db'))

    # Table names
    SUBSCRIBERS = 'subscribers'
    LOGS_TABLE = 'app_logs'

    # Persistent log entries older than this are pruned at startup
    LOG_RETENTION_DAYS = int(os.getenv('LOG_RETENTION_DAYS', '30'))

    # Shown by the health endpoint
    SERVICE_BANNER = os.getenv('SERVICE_BANNER', 'Ar-Risalah Academy Newsletter API is running')

    # Admin listing is disabled until a key is set
    ADMIN_API_KEY = os.getenv('ADMIN_API_KEY')

    # Rate limiting for /api/newsletter (10 requests per 15 minutes)
    RATE_LIMIT_MAX = int(os.getenv('RATE_LIMIT_MAX', '10'))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv('RATE_LIMIT_WINDOW_SECONDS', str(15 * 60)))
    # Only enable behind a proxy that overwrites X-Forwarded-For
    TRUST_PROXY_HEADERS = _env_flag('TRUST_PROXY_HEADERS')

    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Port for local server
    PORT = int(os.getenv('PORT', '3000'))
