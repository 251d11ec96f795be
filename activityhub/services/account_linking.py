# OAuth sign-in policy: one user per email, and a user only signs in
# through the provider(s) already linked to it.

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from activityhub.crud.user_crud import get_user_by_email
from activityhub.errors import AuthError, StorageError
from activityhub.models.user import Account, User
from activityhub.schemas.auth import OAuthProfile

logger = logging.getLogger(__name__)


def sign_in(db: Session, profile: OAuthProfile) -> User:
    """
    Resolve a provider identity to a user.

    - no email from the provider -> AuthError(code="NoEmail")
    - unknown email -> first-time registration: new user + linked account
    - known email, same provider already linked -> that user
    - known email, only other providers linked -> AuthError(code="OAuthAccountNotLinked")
      naming the first linked provider
    """
    if not profile.email:
        raise AuthError("The provider did not return an email address", code="NoEmail")

    email = profile.email.strip().lower()
    user = get_user_by_email(db, email)

    if user is None:
        user = User(email=email, name=profile.name, image=profile.image, interests=[])
        user.accounts.append(
            Account(provider=profile.provider, provider_account_id=profile.provider_account_id)
        )
        try:
            db.add(user)
            db.commit()
        except IntegrityError:
            # Same email registered concurrently; the retry goes through the linked-account path.
            db.rollback()
            raise AuthError("Account already exists, please sign in again", code="EmailExists") from None
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to register user via %s", profile.provider)
            raise StorageError("Failed to sign in") from None
        logger.info("Registered user %s via %s", user.id, profile.provider)
        return user

    if any(acc.provider == profile.provider for acc in user.accounts):
        return user

    primary = user.accounts[0].provider if user.accounts else None
    logger.info("Rejected %s sign-in for user %s (linked: %s)", profile.provider, user.id, primary)
    raise AuthError(
        "This email is already registered with a different provider",
        code="OAuthAccountNotLinked",
        provider=primary,
    )
