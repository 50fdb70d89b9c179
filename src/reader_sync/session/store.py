"""SQLite-backed key/value store for the auth token and device id."""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import sessionmaker
import structlog

from .interfaces import AUTH_TOKEN_KEY, DEVICE_ID_KEY, TokenStoreInterface
from .models import ClientSettingModel, init_db
from ..config.settings import settings

logger = structlog.get_logger()


class TokenStore(TokenStoreInterface):
    """Durable storage scoped to this client installation.

    No validation of the token is done here; whether a token is usable is
    only known once the server accepts or rejects it.
    """

    def __init__(self, database_url: str = None):
        if database_url is None:
            database_url = settings.database_url

        # Ensure data directory exists
        if database_url.startswith("sqlite:///"):
            db_path = database_url.replace("sqlite:///", "")
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = init_db(database_url)
        self.Session = sessionmaker(bind=self.engine)

    def load(self) -> Optional[str]:
        return self._get(AUTH_TOKEN_KEY)

    def save(self, token: str) -> None:
        self._set(AUTH_TOKEN_KEY, token)
        logger.info("auth_token_saved")

    def clear(self) -> None:
        self._delete(AUTH_TOKEN_KEY)
        logger.info("auth_token_cleared")

    def device_id(self) -> str:
        """Return the selected device id, creating one on first use."""
        device_id = self._get(DEVICE_ID_KEY)
        if not device_id:
            device_id = str(uuid.uuid4())
            self._set(DEVICE_ID_KEY, device_id)
            logger.info("device_id_created", device_id=device_id)
        return device_id

    def save_device_id(self, device_id: str) -> None:
        self._set(DEVICE_ID_KEY, device_id)

    def _get(self, key: str) -> Optional[str]:
        session = self.Session()
        try:
            model = session.get(ClientSettingModel, key)
            return model.value if model else None
        finally:
            session.close()

    def _set(self, key: str, value: str) -> None:
        session = self.Session()
        try:
            model = session.get(ClientSettingModel, key)
            if model:
                model.value = value
                model.updated_at = datetime.utcnow()
            else:
                session.add(ClientSettingModel(key=key, value=value))
            session.commit()
        finally:
            session.close()

    def _delete(self, key: str) -> None:
        session = self.Session()
        try:
            model = session.get(ClientSettingModel, key)
            if model:
                session.delete(model)
                session.commit()
        finally:
            session.close()
