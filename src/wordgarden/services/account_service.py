"""Account service for signing in to cloud sync."""
import logging
import uuid
from datetime import UTC, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from wordgarden.models.models import Account, SyncLog

logger = logging.getLogger(__name__)


class AccountService:
    """Keeps track of the signed-in account used as the sync identity."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.current_account: Optional[Account] = None

    @property
    def is_logged_in(self) -> bool:
        return self.current_account is not None

    def get_account_by_uid(self, uid: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.uid == uid).first()

    def get_account_by_email(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.email == email.lower()).first()

    def get_or_create_account(self, email: str, display_name: Optional[str] = None) -> Account:
        """Get existing account or create a new one."""
        email = email.strip().lower()
        if not email:
            raise ValueError("Email is required")

        account = self.get_account_by_email(email)
        if not account:
            account = Account(uid=uuid.uuid4().hex, email=email, display_name=display_name)
            self.db.add(account)
            self.db.commit()
            self.db.refresh(account)
            logger.info("Account created for %s", email)
        return account

    def sign_in(self, email: str, display_name: Optional[str] = None) -> Account:
        """Sign in, making the account the current sync identity."""
        self.current_account = self.get_or_create_account(email, display_name)
        logger.info("Signed in as %s", self.current_account.email)
        return self.current_account

    def sign_in_by_uid(self, uid: str) -> Optional[Account]:
        """Restore a previous sign-in from a stored identity."""
        account = self.get_account_by_uid(uid)
        self.current_account = account
        return account

    def sign_out(self) -> None:
        if self.current_account:
            logger.info("Signed out %s", self.current_account.email)
        self.current_account = None

    def current_identity(self) -> Optional[str]:
        """Identity of the signed-in account, or None."""
        return self.current_account.uid if self.current_account else None

    def log_sync_activity(self, uid: str, operation: str, status: str, message: str) -> None:
        """Record a sync attempt for an account."""
        account = self.get_account_by_uid(uid)
        if account is None:
            logger.warning("Cannot log sync activity for unknown account %s", uid)
            return
        self.db.add(SyncLog(account_id=account.id, operation=operation, status=status, message=message))
        if status == "ok":
            account.last_sync_at = datetime.now(UTC)
        self.db.commit()

    def get_sync_logs(self, uid: str, limit: int = 20) -> List[SyncLog]:
        account = self.get_account_by_uid(uid)
        if account is None:
            return []
        return (
            self.db.query(SyncLog)
            .filter(SyncLog.account_id == account.id)
            .order_by(SyncLog.id.desc())
            .limit(limit)
            .all()
        )
