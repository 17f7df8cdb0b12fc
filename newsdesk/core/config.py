import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for Newsdesk.
    Deployments provide database paths and store credentials via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    NEWS_DB = os.getenv('NEWS_DB', os.path.join(DB_DIR, "news.db"))
    ANALYTICS_DB = os.getenv('ANALYTICS_DB', os.path.join(DB_DIR, "analytics_log.db"))

    # Store backend: 'sqlite' keeps everything in NEWS_DB,
    # 'rest' talks to the hosted database over its REST interface
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'sqlite')
    STORE_URL = os.getenv('STORE_URL') or os.getenv('SUPABASE_URL')
    STORE_KEY = os.getenv('STORE_KEY') or os.getenv('SUPABASE_ANON_KEY')
    STORE_TIMEOUT = float(os.getenv('STORE_TIMEOUT', '10'))

    # Table names
    ARTICLES_TABLE = os.getenv('ARTICLES_TABLE', 'apac_article')
    NEWSLETTERS_TABLE = os.getenv('NEWSLETTERS_TABLE', 'newsletter')
    ANALYSTS_TABLE = "analysts"

    # Comma-separated list of origins allowed to call the JSON API
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config class, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
