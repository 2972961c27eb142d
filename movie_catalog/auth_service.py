import logging
from datetime import datetime

from movie_catalog.models import User

logger = logging.getLogger(__name__)


class AuthService:
    """Credential checks and account creation for catalog admins"""

    def __init__(self, session):
        self.session = session

    def validate_user(self, email: str, password: str) -> bool:
        user = self.session.query(User).filter_by(email=email, is_active=True).first()
        if user is None or not user.check_password(password):
            logger.info(f"Failed login for {email}")
            return False

        user.last_login = datetime.utcnow()
        self.session.commit()
        return True

    def create_user(self, email: str, password: str) -> bool:
        if self.session.query(User).filter_by(email=email).first():
            return False

        user = User(email=email, is_active=True, created_at=datetime.utcnow())
        user.set_password(password)
        self.session.add(user)
        self.session.commit()
        logger.info(f"Created user {email}")
        return True
