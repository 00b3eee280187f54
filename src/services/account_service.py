import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Optional, Tuple
from src.core.exceptions import Forbidden, Unauthorized
from src.core.security import generate_token, hash_password, hash_token, verify_password
from src.models.database import User
from src.models.schemas import Role, UserCreate

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@lru_cache()
def _dummy_hash() -> str:
    # Unknown usernames still pay for one bcrypt check
    return hash_password("not-a-real-password")


def _branch_for(role: str, branch_id: Optional[int]) -> Optional[int]:
    """Only employees are tied to a branch"""
    return branch_id if role == Role.employee.value else None


class AccountService:
    """Registration, login sessions and role checks"""

    def __init__(self, users, sessions, session_ttl: timedelta = timedelta(hours=24)):
        self.users = users
        self.sessions = sessions
        self.session_ttl = session_ttl

    async def register(self, data: UserCreate, acting_user: Optional[User] = None) -> User:
        role = Role(data.role).value
        if role == Role.admin.value and (acting_user is None or acting_user.role != Role.admin.value):
            raise Forbidden("Only an administrator can create administrator accounts")

        user = User(
            username=data.username,
            full_name=data.full_name,
            password_hash=hash_password(data.password),
            role=role,
            branch_id=_branch_for(role, data.branch_id)
        )
        user = await self.users.create(user)
        logger.info(f"Registered user {user.username} with role {role}")
        return user

    async def login(self, username: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and open a session.

        Unknown user and wrong password raise the same Unauthorized error.
        """
        user = await self.users.find(username)
        if user is None:
            verify_password(password, _dummy_hash())
            logger.info("Login failed")
            raise Unauthorized(INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            logger.info("Login failed")
            raise Unauthorized(INVALID_CREDENTIALS)

        token = generate_token()
        await self.sessions.create(
            token_hash=hash_token(token),
            username=user.username,
            expires_at=datetime.utcnow() + self.session_ttl
        )
        logger.info(f"User {user.username} logged in")
        return user, token

    async def logout(self, token: str) -> None:
        await self.sessions.revoke(hash_token(token))

    async def authenticate(self, token: Optional[str]) -> User:
        if not token:
            raise Unauthorized("Authentication required")

        session = await self.sessions.get_valid(hash_token(token), datetime.utcnow())
        if session is None:
            raise Unauthorized("Invalid or expired token")

        user = await self.users.find(session.username)
        if user is None:
            # Account deleted while the session was still open
            await self.sessions.revoke(session.token_hash)
            raise Unauthorized("Invalid or expired token")
        return user

    @staticmethod
    def authorize(user: User, *roles: Role) -> User:
        allowed = {Role(r).value for r in roles}
        if user.role not in allowed:
            logger.warning(f"User {user.username} with role {user.role} denied, needs {sorted(allowed)}")
            raise Forbidden("Insufficient permissions")
        return user

    # Administration

    async def list_users(self) -> List[User]:
        return await self.users.list_all()

    async def update_user(
        self, username: str, full_name: Optional[str], role: Role, branch_id: Optional[int]
    ) -> User:
        role_value = Role(role).value
        return await self.users.update(
            username, full_name, role_value, _branch_for(role_value, branch_id)
        )

    async def delete_user(self, username: str) -> None:
        await self.users.delete(username)
        revoked = await self.sessions.revoke_all(username)
        logger.info(f"Deleted user {username}, revoked {revoked} session(s)")

    async def create_admin(self, username: str, password: str, full_name: str) -> User:
        """Bootstrap path used by the command line; skips the caller check"""
        user = User(
            username=username,
            full_name=full_name,
            password_hash=hash_password(password),
            role=Role.admin.value,
            branch_id=None
        )
        return await self.users.create(user)
