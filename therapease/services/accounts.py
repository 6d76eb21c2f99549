"""
Account Service

Registration, login, self-service profile, the admin account directory,
and the ban workflow. Therapist registrations create their pending
therapist profile in the same transaction as the account.
"""

from typing import Optional, Union
from uuid import UUID, uuid4

import structlog
from pydantic import TypeAdapter
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from therapease.models.account import (
    Account,
    AccountPage,
    AccountRead,
    AccountRole,
    AccountSummary,
    AuthSession,
    CurrentAccount,
    ProfileUpdate,
    TherapistRegistration,
    UserRegistration,
)
from therapease.models.audit_log import AuditEventType
from therapease.models.base import utcnow
from therapease.models.common import Pagination, page_offset
from therapease.models.therapist_profile import PLACEHOLDER_PHONE, TherapistProfile, VerificationStatus
from therapease.services import policies
from therapease.services.audit import AuditService
from therapease.services.auth import create_access_token, decode_access_token, hash_password, verify_password
from therapease.services.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

_account_read = TypeAdapter(AccountRead)

ROLE_FILTERS = {"all", "user", "therapist", "admin"}
STATUS_FILTERS = {"all", "banned", "active"}


def to_account_read(account: Account):
    """Serialize an account row into its role-specific read model."""
    banned_by = account.banned_by_account
    return _account_read.validate_python({
        "id": account.id,
        "name": account.name,
        "email": account.email,
        "role": AccountRole(account.role).value,
        "phone": account.phone,
        "date_of_birth": account.date_of_birth,
        "is_active": account.is_active,
        "is_verified": account.is_verified,
        "is_banned": account.is_banned,
        "banned_at": account.banned_at,
        "banned_by": AccountSummary.model_validate(banned_by) if banned_by is not None else None,
        "ban_reason": account.ban_reason,
        "specialization": account.specialization,
        "license_number": account.license_number,
        "experience": account.experience,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    })


class AccountService:
    """
    Manages accounts and their moderation state.

    Args:
        session_factory: SQLAlchemy session factory.
        audit_service: Optional audit service; defaults to one sharing the
            same session factory.
    """

    def __init__(self, session_factory=None, audit_service: Optional[AuditService] = None):
        self._session_factory = session_factory
        self._audit = audit_service or AuditService(session_factory=session_factory)

    def _get_session(self):
        if self._session_factory is None:
            raise ServiceError("Database session not configured")
        return self._session_factory()

    @staticmethod
    def _load(db, account_id: UUID) -> Account:
        account = db.query(Account).filter(Account.id == account_id).first()
        if account is None:
            raise NotFoundError("User not found")
        return account

    # =========================================================================
    # Registration and login
    # =========================================================================

    def register(self, data: Union[UserRegistration, TherapistRegistration]) -> AuthSession:
        """Create an account and issue its first token.

        Raises:
            ValidationError: If the requested role cannot self-register.
            ConflictError: If the email or license number is taken.
        """
        if data.role not in (AccountRole.USER.value, AccountRole.THERAPIST.value):
            raise ValidationError("Invalid role")

        db = self._get_session()
        try:
            if db.query(Account.id).filter(Account.email == data.email).first() is not None:
                raise ConflictError("User already exists with this email")

            now = utcnow()
            account = Account(
                id=uuid4(),
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password),
                role=AccountRole(data.role),
                phone=data.phone,
                date_of_birth=data.date_of_birth,
                is_active=True,
                is_verified=False,
                is_banned=False,
                created_at=now,
                updated_at=now,
            )

            if isinstance(data, TherapistRegistration):
                license_taken = (
                    db.query(TherapistProfile.id)
                    .filter(TherapistProfile.license_number == data.license_number)
                    .first()
                )
                if license_taken is not None:
                    raise ConflictError("License number already exists. Please use a unique license number.")

                account.specialization = data.specialization
                account.license_number = data.license_number
                account.experience = data.experience
                db.add(account)
                db.add(TherapistProfile(
                    id=uuid4(),
                    account_id=account.id,
                    specialization=[data.specialization],
                    license_number=data.license_number,
                    experience=data.experience,
                    contact_info={"email": data.email, "phone": data.phone or PLACEHOLDER_PHONE},
                    certifications=[],
                    verified=False,
                    verification_status=VerificationStatus.PENDING,
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                ))
            else:
                db.add(account)

            db.commit()
            db.refresh(account)

            logger.info("account_registered", account_id=str(account.id), role=data.role)

            token = create_access_token(account.id, account.role.value)
            return AuthSession(token=token, account=to_account_read(account))

        except ServiceError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            raise ConflictError("User already exists with this email") from e
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to register account: {e}") from e
        finally:
            db.close()

    def authenticate(self, email: str, password: str, ip_address: str = "unknown") -> AuthSession:
        """Check credentials and issue a token.

        Raises:
            AuthenticationError: Unknown email, wrong password, or inactive account.
        """
        db = self._get_session()
        try:
            account = db.query(Account).filter(Account.email == email.strip().lower()).first()

            if account is None or not verify_password(password, account.password_hash):
                self._audit.log_auth_event(
                    actor_id=account.id if account is not None else None,
                    success=False,
                    details={"email": email, "reason": "invalid_credentials"},
                    ip_address=ip_address,
                )
                raise AuthenticationError("Invalid credentials")

            if not account.is_active:
                self._audit.log_auth_event(
                    actor_id=account.id,
                    success=False,
                    details={"reason": "inactive"},
                    ip_address=ip_address,
                )
                raise AuthenticationError("Account is deactivated. Please contact support.")

            self._audit.log_auth_event(actor_id=account.id, success=True, ip_address=ip_address)

            token = create_access_token(account.id, account.role.value)
            return AuthSession(token=token, account=to_account_read(account))
        finally:
            db.close()

    def resolve_token(self, token: str) -> CurrentAccount:
        """Turn a bearer token into the calling account.

        Raises:
            AuthenticationError: Bad token or unknown account.
            AuthorizationError: Banned or deactivated account.
        """
        claims = decode_access_token(token)
        db = self._get_session()
        try:
            account = db.query(Account).filter(Account.id == claims["sub"]).first()
            if account is None:
                raise AuthenticationError("No user found with this token")
            policies.ensure_account_usable(account)
            return CurrentAccount.model_validate(account)
        finally:
            db.close()

    # =========================================================================
    # Self-service
    # =========================================================================

    def get_me(self, account_id: UUID):
        db = self._get_session()
        try:
            return to_account_read(self._load(db, account_id))
        finally:
            db.close()

    def update_profile(self, account_id: UUID, data: ProfileUpdate):
        """Apply the fields present in ``data`` to the caller's account."""
        db = self._get_session()
        try:
            account = self._load(db, account_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                if field == "name" and value is None:
                    continue
                setattr(account, field, value)
            account.updated_at = utcnow()
            db.commit()
            db.refresh(account)

            logger.info("account_profile_updated", account_id=str(account_id))
            return to_account_read(account)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to update profile: {e}") from e
        finally:
            db.close()

    # =========================================================================
    # Admin directory
    # =========================================================================

    def list_accounts(
        self,
        role: str = "all",
        status: str = "all",
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = policies.DEFAULT_ACCOUNT_PAGE_SIZE,
    ) -> AccountPage:
        """List accounts newest first with role, ban-status, and text filters."""
        policies.validate_pagination(page, page_size, policies.MAX_ACCOUNT_PAGE_SIZE)
        if role not in ROLE_FILTERS:
            raise ValidationError("Invalid role filter")
        if status not in STATUS_FILTERS:
            raise ValidationError("Invalid status filter")

        db = self._get_session()
        try:
            query = db.query(Account)
            if role != "all":
                query = query.filter(Account.role == AccountRole(role))
            if status == "banned":
                query = query.filter(Account.is_banned.is_(True))
            elif status == "active":
                query = query.filter(Account.is_banned.is_(False))
            if search:
                pattern = f"%{search.strip()}%"
                query = query.filter(or_(Account.name.ilike(pattern), Account.email.ilike(pattern)))

            total = query.count()
            accounts = (
                query.order_by(Account.created_at.desc())
                .offset(page_offset(page, page_size))
                .limit(page_size)
                .all()
            )
            return AccountPage(
                items=[to_account_read(a) for a in accounts],
                pagination=Pagination.build(page, page_size, total),
            )
        finally:
            db.close()

    def ban(self, actor_id: UUID, target_id: UUID, reason: str):
        """Ban and deactivate a non-admin account.

        Raises:
            NotFoundError: Unknown target.
            AuthorizationError: Target is an admin or the actor themselves.
            ConflictError: Target already banned.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Ban reason is required")

        db = self._get_session()
        try:
            target = self._load(db, target_id)
            policies.ensure_can_ban(actor_id, target)

            target.is_banned = True
            target.banned_at = utcnow()
            target.banned_by = actor_id
            target.ban_reason = reason
            target.is_active = False
            self._audit.log_moderation(
                event_type=AuditEventType.ACCOUNT_BAN,
                actor_id=actor_id,
                resource_type="account",
                resource_id=target_id,
                details={"reason": reason},
                session=db,
            )
            db.commit()
            db.refresh(target)

            logger.info("account_banned", account_id=str(target_id), banned_by=str(actor_id))
            return to_account_read(target)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to ban account: {e}") from e
        finally:
            db.close()

    def unban(self, actor_id: UUID, target_id: UUID):
        """Lift a ban and reactivate the account."""
        db = self._get_session()
        try:
            target = self._load(db, target_id)
            policies.ensure_can_unban(target)

            target.is_banned = False
            target.banned_at = None
            target.banned_by = None
            target.ban_reason = None
            target.is_active = True
            self._audit.log_moderation(
                event_type=AuditEventType.ACCOUNT_UNBAN,
                actor_id=actor_id,
                resource_type="account",
                resource_id=target_id,
                session=db,
            )
            db.commit()
            db.refresh(target)

            logger.info("account_unbanned", account_id=str(target_id), unbanned_by=str(actor_id))
            return to_account_read(target)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to unban account: {e}") from e
        finally:
            db.close()

    # =========================================================================
    # Seeding
    # =========================================================================

    def ensure_admin(self, email: str, password: str, name: str) -> tuple[AccountRead, bool]:
        """Create the admin account, or promote an existing one.

        Returns:
            The admin account and whether it was newly created.
        """
        email = email.strip().lower()
        db = self._get_session()
        try:
            account = db.query(Account).filter(Account.email == email).first()
            created = account is None
            if created:
                now = utcnow()
                account = Account(
                    id=uuid4(),
                    name=name,
                    email=email,
                    password_hash=hash_password(password),
                    role=AccountRole.ADMIN,
                    is_active=True,
                    is_verified=True,
                    is_banned=False,
                    created_at=now,
                    updated_at=now,
                )
                db.add(account)
            else:
                if account.role != AccountRole.ADMIN:
                    account.role = AccountRole.ADMIN
                    account.specialization = None
                    account.license_number = None
                    account.experience = None
                # The seeded admin must be able to sign in
                account.is_active = True
                account.is_banned = False
                account.banned_at = None
                account.banned_by = None
                account.ban_reason = None
                account.updated_at = utcnow()

            db.commit()
            db.refresh(account)

            logger.info("admin_seeded", account_id=str(account.id), created=created)
            return to_account_read(account), created

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to create admin: {e}") from e
        finally:
            db.close()
