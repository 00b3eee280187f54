from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from src.core.exceptions import DuplicateKey, NotFound
from src.models.database import User
from src.stores.base import SQLStore


class UserStore(SQLStore):

    async def find(self, username: str) -> Optional[User]:
        with self._guard("looking up user"):
            return self.db.query(User).filter(User.username == username).first()

    async def get(self, username: str) -> User:
        user = await self.find(username)
        if not user:
            raise NotFound(f"User {username} not found")
        return user

    async def create(self, user: User) -> User:
        with self._guard("creating user"):
            # Check first, the key constraint still catches a concurrent insert
            if self.db.query(User.username).filter(User.username == user.username).first():
                raise DuplicateKey("Username already taken")
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateKey("Username already taken") from e
            self.db.refresh(user)
        return user

    async def list_all(self) -> List[User]:
        with self._guard("listing users"):
            return self.db.query(User).order_by(User.username).all()

    async def update(
        self, username: str, full_name: Optional[str], role: str, branch_id: Optional[int]
    ) -> User:
        user = await self.get(username)
        with self._guard("updating user"):
            user.full_name = full_name
            user.role = role
            user.branch_id = branch_id
            self.db.commit()
            self.db.refresh(user)
        return user

    async def delete(self, username: str) -> None:
        user = await self.get(username)
        with self._guard("deleting user"):
            self.db.delete(user)
            self.db.commit()
