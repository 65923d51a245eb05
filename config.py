import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Session lifecycle
    SESSION_DURATION_HOURS = data.get("SESSION_DURATION_HOURS", 24)
    SESSION_REFRESH_THRESHOLD_HOURS = data.get("SESSION_REFRESH_THRESHOLD_HOURS", 2)
    MAX_SESSIONS_PER_USER = data.get("MAX_SESSIONS_PER_USER", 10)
    SESSION_CACHE_TTL_SECONDS = data.get("SESSION_CACHE_TTL_SECONDS", 900)
    ACCESS_UPDATE_INTERVAL_SECONDS = data.get("ACCESS_UPDATE_INTERVAL_SECONDS", 300)
    SESSION_COOKIE_NAME = data.get("SESSION_COOKIE_NAME", "session-token")

    # Suspicious activity heuristics
    BURST_WINDOW_SECONDS = data.get("BURST_WINDOW_SECONDS", 300)
    BURST_COUNT_THRESHOLD = data.get("BURST_COUNT_THRESHOLD", 3)
    IP_CHURN_RATIO = data.get("IP_CHURN_RATIO", 0.5)
    UA_CHURN_RATIO = data.get("UA_CHURN_RATIO", 0.7)
    DETECTOR_HISTORY_SIZE = data.get("DETECTOR_HISTORY_SIZE", 5)

    # Background cleanup
    SESSION_CLEANUP_ENABLED = bool(data.get("SESSION_CLEANUP_ENABLED", False))
    SESSION_CLEANUP_INTERVAL_SECONDS = data.get("SESSION_CLEANUP_INTERVAL_SECONDS", 3600)
