"""
Authentication Clients
======================

Sign-in against either the local analysts table or the hosted store's
password grant. Both keep the current session and notify subscribers
when it changes.
"""

import logging
import secrets
import sqlite3
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional

import requests
from werkzeug.security import generate_password_hash, check_password_hash

from ...core.database import Database
from ...core.exceptions import AuthError, ValidationError, StoreError

logger = logging.getLogger(__name__)

SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    access_token: str
    expires_at: Optional[int] = None

    def to_dict(self):
        data = asdict(self)
        data.pop('access_token')
        return data


class AuthClient:
    """Holds the current session and fans out change notifications"""

    def __init__(self):
        self._session = None
        self._listeners = []

    def get_session(self):
        return self._session

    def on_session_change(self, callback):
        """Subscribe to (event, session) notifications; returns an unsubscribe function"""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event, session):
        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception as e:
                logger.error(f"Session listener failed on {event}: {e}")

    def sign_in(self, email, password):
        email = (email or '').strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")
        session = self._authenticate(email, password)
        self._session = session
        self._notify(SIGNED_IN, session)
        return session

    def sign_out(self):
        session = self._session
        if session is not None:
            self._revoke(session)
        self._session = None
        self._notify(SIGNED_OUT, None)

    def _authenticate(self, email, password):
        raise NotImplementedError

    def _revoke(self, session):
        pass


class LocalAuth(AuthClient):
    """Analyst accounts kept in the local sqlite database"""

    def __init__(self, db_path, table='analysts'):
        super().__init__()
        self.db_path = db_path
        self.table = table
        Database.init_schema(db_path, [f'''
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_login TIMESTAMP
            )
        '''])

    def analyst_count(self):
        conn = Database.connect(self.db_path)
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]
        finally:
            conn.close()

    def create_analyst(self, email, password):
        """Create an analyst account; returns its id"""
        email = (email or '').strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password) < 8:
            raise ValidationError("Password must be at least 8 characters")

        conn = Database.connect(self.db_path)
        try:
            cursor = conn.execute(
                f"INSERT INTO {self.table} (email, password_hash) VALUES (?, ?)",
                (email, generate_password_hash(password))
            )
            conn.commit()
            return cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise ValidationError("An analyst with this email already exists") from e
        finally:
            conn.close()

    def _authenticate(self, email, password):
        conn = Database.connect(self.db_path)
        try:
            row = conn.execute(
                f"SELECT id, email, password_hash FROM {self.table} WHERE email = ?", (email,)
            ).fetchone()
            if not row or not check_password_hash(row['password_hash'], password):
                raise AuthError("Invalid email or password")
            conn.execute(
                f"UPDATE {self.table} SET last_login = ? WHERE id = ?",
                (datetime.now(timezone.utc).isoformat(), row['id'])
            )
            conn.commit()
        finally:
            conn.close()

        return Session(user_id=str(row['id']), email=row['email'], access_token=secrets.token_urlsafe(32))


class HostedAuth(AuthClient):
    """Password sign-in against the hosted store's auth endpoints"""

    def __init__(self, base_url, api_key, timeout=10, session=None):
        super().__init__()
        if not base_url or not api_key:
            raise ValidationError("STORE_URL and STORE_KEY are required for hosted auth")
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self.http = session or requests.Session()

    def _headers(self, token=None):
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
            "Content-Type": "application/json",
        }

    def _authenticate(self, email, password):
        try:
            resp = self.http.post(
                f"{self.base_url}/auth/v1/token",
                params={'grant_type': 'password'},
                json={'email': email, 'password': password},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Auth request failed: {e}")
            raise StoreError(f"Sign-in service unavailable: {e}") from e

        if resp.status_code in (400, 401, 403):
            try:
                message = resp.json().get('error_description') or "Invalid email or password"
            except ValueError:
                message = "Invalid email or password"
            raise AuthError(message)
        if resp.status_code >= 300:
            raise StoreError(f"Sign-in service returned HTTP {resp.status_code}")

        data = resp.json()
        user = data.get('user') or {}
        return Session(
            user_id=str(user.get('id', '')),
            email=user.get('email', email),
            access_token=data.get('access_token', ''),
            expires_at=data.get('expires_at'),
        )

    def _revoke(self, session):
        try:
            self.http.post(
                f"{self.base_url}/auth/v1/logout",
                headers=self._headers(session.access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # Local sign-out still proceeds
            logger.warning(f"Hosted sign-out failed: {e}")
