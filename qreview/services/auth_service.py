import hmac
import secrets
import threading
import time

from flask import current_app

from qreview.errors import AuthError
from qreview.extensions import bcrypt

PASSWORD_PAD_LENGTH = 256


class AdminSessionStore:
    """In-process admin sessions: opaque token -> issue time (epoch seconds)."""

    def __init__(self, ttl_seconds, clock=time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions = {}
        self._lock = threading.Lock()
        self._stop_event = None
        self._sweeper = None

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def _expired(self, issued_at, now):
        return now - issued_at > self.ttl_seconds

    def create(self):
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[token] = self._clock()
        return token

    def is_valid(self, token):
        if not token:
            return False
        with self._lock:
            issued_at = self._sessions.get(token)
            if issued_at is None:
                return False
            if self._expired(issued_at, self._clock()):
                del self._sessions[token]
                return False
            return True

    def destroy(self, token):
        with self._lock:
            self._sessions.pop(token, None)

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def sweep_expired(self):
        now = self._clock()
        with self._lock:
            expired = [token for token, issued_at in self._sessions.items() if self._expired(issued_at, now)]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def start_sweeper(self, interval_seconds, logger=None):
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        stop_event = threading.Event()

        def run():
            while not stop_event.wait(interval_seconds):
                removed = self.sweep_expired()
                if removed and logger is not None:
                    logger.debug("Swept %d expired admin sessions", removed)

        self._stop_event = stop_event
        self._sweeper = threading.Thread(target=run, name="admin-session-sweeper", daemon=True)
        self._sweeper.start()

    def stop_sweeper(self):
        if self._stop_event is not None:
            self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1)
        self._stop_event = None
        self._sweeper = None


def constant_time_equals(candidate, expected):
    # Pad both sides to one length so neither length nor content leaks through timing.
    a = candidate.encode("utf-8")
    b = expected.encode("utf-8")
    length = max(PASSWORD_PAD_LENGTH, len(a), len(b))
    matches = hmac.compare_digest(a.ljust(length, b"\0"), b.ljust(length, b"\0"))
    return matches and len(a) == len(b)


class AuthService:
    @staticmethod
    def session_store():
        return current_app.extensions["admin_sessions"]

    @staticmethod
    def verify_password(password):
        if not isinstance(password, str) or not password:
            return False

        password_hash = current_app.config.get("ADMIN_PASSWORD_HASH")
        if password_hash:
            try:
                return bcrypt.check_password_hash(password_hash, password)
            except ValueError:
                current_app.logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
                return False

        expected = current_app.config.get("ADMIN_PASSWORD") or ""
        if not expected:
            return False
        return constant_time_equals(password, expected)

    @staticmethod
    def login(password):
        if not AuthService.verify_password(password):
            current_app.logger.warning("Admin login rejected")
            raise AuthError("Invalid password")
        token = AuthService.session_store().create()
        current_app.logger.info("Admin logged in")
        return token

    @staticmethod
    def logout(token):
        AuthService.session_store().destroy(token)
        current_app.logger.info("Admin logged out")

    @staticmethod
    def bearer_token(authorization_header):
        header = authorization_header or ""
        if not header.startswith("Bearer "):
            return None
        return header[len("Bearer "):].strip() or None
