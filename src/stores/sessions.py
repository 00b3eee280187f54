from datetime import datetime
from typing import Optional
from src.models.database import SessionToken
from src.stores.base import SQLStore


class SessionStore(SQLStore):

    async def create(self, token_hash: str, username: str, expires_at: datetime) -> SessionToken:
        session = SessionToken(
            token_hash=token_hash,
            username=username,
            created_at=datetime.utcnow(),
            expires_at=expires_at
        )
        with self._guard("creating session"):
            self.db.add(session)
            self.db.commit()
        return session

    async def get_valid(self, token_hash: str, now: datetime) -> Optional[SessionToken]:
        """Return the session if it exists and has not expired; expired ones are removed"""
        with self._guard("reading session"):
            session = self.db.query(SessionToken).filter(
                SessionToken.token_hash == token_hash
            ).first()
            if session is None:
                return None
            if session.expires_at <= now:
                self.db.delete(session)
                self.db.commit()
                return None
        return session

    async def revoke(self, token_hash: str) -> None:
        with self._guard("revoking session"):
            self.db.query(SessionToken).filter(SessionToken.token_hash == token_hash).delete()
            self.db.commit()

    async def revoke_all(self, username: str) -> int:
        with self._guard("revoking sessions"):
            count = self.db.query(SessionToken).filter(SessionToken.username == username).delete()
            self.db.commit()
        return count
