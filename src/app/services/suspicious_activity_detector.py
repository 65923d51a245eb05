"""
Suspicious Activity Detector

Cheap, explainable heuristics evaluated once when a session is created.
Each rule that fires contributes a human-readable reason; any reason flags
the session. Rules are OR'd, not scored.
"""

from typing import Iterable, List

from src.app.services.session_config import SessionConfig
from src.domain.entities import AuthSession

RAPID_SESSION_CREATION = "Rapid session creation"
MULTIPLE_IP_ADDRESSES = "Multiple IP addresses"
MULTIPLE_USER_AGENTS = "Multiple user agents"


class SuspiciousActivityDetector:
    def __init__(self, config: SessionConfig):
        self.config = config

    def select_history(
        self, new_session: AuthSession, candidates: Iterable[AuthSession]
    ) -> List[AuthSession]:
        """The user's other sessions, newest first, capped at the history size"""
        others = [s for s in candidates if s.id != new_session.id]
        others.sort(key=lambda s: s.created_at, reverse=True)
        return others[: self.config.detector_history_size]

    def evaluate(
        self, new_session: AuthSession, recent_sessions: List[AuthSession]
    ) -> List[str]:
        """
        Evaluate the heuristics for a freshly created session.

        Args:
            new_session: The session just created
            recent_sessions: Output of select_history (excludes new_session)

        Returns:
            Reasons that fired, empty when nothing looks suspicious
        """
        reasons = []
        if self._is_burst(new_session, recent_sessions):
            reasons.append(RAPID_SESSION_CREATION)
        if self._is_ip_churn(new_session, recent_sessions):
            reasons.append(MULTIPLE_IP_ADDRESSES)
        if self._is_user_agent_churn(new_session, recent_sessions):
            reasons.append(MULTIPLE_USER_AGENTS)
        return reasons

    def _is_burst(self, new_session: AuthSession, recent: List[AuthSession]) -> bool:
        in_window = [
            s for s in recent
            if new_session.created_at - s.created_at < self.config.burst_window
        ]
        return len(in_window) >= self.config.burst_count_threshold

    def _is_ip_churn(self, new_session: AuthSession, recent: List[AuthSession]) -> bool:
        if not new_session.ip_address or not recent:
            return False
        foreign = [
            s for s in recent
            if s.ip_address and s.ip_address != new_session.ip_address
        ]
        return len(foreign) / len(recent) > self.config.ip_churn_ratio

    def _is_user_agent_churn(
        self, new_session: AuthSession, recent: List[AuthSession]
    ) -> bool:
        if not new_session.user_agent or not recent:
            return False
        foreign = [
            s for s in recent
            if s.user_agent and s.user_agent != new_session.user_agent
        ]
        return len(foreign) / len(recent) > self.config.ua_churn_ratio
