from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field


class SessionConfig(BaseModel):
    """
    Tunables for the session lifecycle and the suspicious activity detector.

    Injected into SessionService; tests build it directly with short
    durations instead of patching module constants.
    """

    model_config = ConfigDict(frozen=True)

    session_duration: timedelta = timedelta(hours=24)
    refresh_threshold: timedelta = timedelta(hours=2)
    max_sessions_per_user: int = Field(default=10, ge=1)
    cache_ttl_seconds: int = Field(default=900, ge=1)
    access_update_interval: timedelta = timedelta(minutes=5)

    burst_window: timedelta = timedelta(minutes=5)
    burst_count_threshold: int = 3
    ip_churn_ratio: float = 0.5
    ua_churn_ratio: float = 0.7
    detector_history_size: int = 5

    @classmethod
    def from_application_config(cls, app_config) -> "SessionConfig":
        return cls(
            session_duration=timedelta(hours=app_config.SESSION_DURATION_HOURS),
            refresh_threshold=timedelta(hours=app_config.SESSION_REFRESH_THRESHOLD_HOURS),
            max_sessions_per_user=app_config.MAX_SESSIONS_PER_USER,
            cache_ttl_seconds=app_config.SESSION_CACHE_TTL_SECONDS,
            access_update_interval=timedelta(
                seconds=app_config.ACCESS_UPDATE_INTERVAL_SECONDS
            ),
            burst_window=timedelta(seconds=app_config.BURST_WINDOW_SECONDS),
            burst_count_threshold=app_config.BURST_COUNT_THRESHOLD,
            ip_churn_ratio=app_config.IP_CHURN_RATIO,
            ua_churn_ratio=app_config.UA_CHURN_RATIO,
            detector_history_size=app_config.DETECTOR_HISTORY_SIZE,
        )
