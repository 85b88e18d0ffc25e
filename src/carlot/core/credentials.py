from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from carlot.core.errors import DuplicateEmail, InvalidCredential
from carlot.core.security import (
    Identity,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from carlot.models.schema import User
from carlot.shared import Logger
from carlot.shared.config import Auth
from carlot.shared.db import Database, upstream_errors

logger = Logger(__name__).get_logger()


class CredentialService:
    """Signup, login and token verification for user accounts."""

    def __init__(self, database: Database, auth: Auth):
        self.database = database
        self.auth = auth

    def _find_by_email(self, session: Session, email: str) -> User | None:
        return session.exec(select(User).where(User.email == email)).first()

    def signup(self, email: str, password: str) -> str:
        logger.debug("Signup request for %s", email)

        with upstream_errors("signup"), self.database.session() as session:
            # Fast path only; the unique index on user.email is the real guard
            existing_user = self._find_by_email(session, email)
            if existing_user:
                logger.info("Signup rejected, email already in use: %s", email)
                raise DuplicateEmail()

            new_user = User(email=email, password_hash=hash_password(password))
            session.add(new_user)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                logger.info("Signup lost a race for email: %s", email)
                raise DuplicateEmail() from e
            session.refresh(new_user)
            identity = Identity(user_id=new_user.id)

        logger.info("Registered user %s (id %s)", email, identity.user_id)
        return self.issue(identity)

    def login(self, email: str, password: str) -> str:
        with upstream_errors("login"), self.database.session() as session:
            user = self._find_by_email(session, email)

        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", email)
            raise InvalidCredential("Invalid credentials")

        logger.info("User %s logged in", user.id)
        return self.issue(Identity(user_id=user.id))

    def issue(self, identity: Identity) -> str:
        return create_access_token(identity, self.auth)

    def identify(self, token: str) -> Identity:
        return decode_access_token(token, self.auth)
