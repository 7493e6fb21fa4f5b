from __future__ import annotations

from dataclasses import dataclass

from src.application.ports import IdentityProvider, ProfileStore
from src.domain.entities.profile import ProfileEntity, ProfileSeed
from src.domain.entities.session import Identity
from src.domain.errors import AuthError, ConstraintError
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Registration:
    identity: Identity | None
    profile: ProfileEntity


@dataclass
class RegisterAccountUseCase:
    """
    Create a provider account and its profile row.

    The steps run strictly in order and stop at the first failure. Nothing
    already done is undone: if signing in or creating the profile fails,
    the provider account from the first step stays in place.
    """

    provider: IdentityProvider
    profiles: ProfileStore

    async def execute(
        self, email: str, password: str, first_name: str, last_name: str
    ) -> Registration:
        """
        Raises:
            AuthError: account creation or the follow-up sign-in failed
            ConstraintError: the profile row could not be written
        """
        seed = ProfileSeed(email=email, first_name=first_name, last_name=last_name)

        logger.info("sign_up_started", email=email)
        created = await self.provider.sign_up(email, password, seed)
        if created.error is not None:
            raise AuthError(created.error.message, email=email, step="create_account")
        if not created.account_id:
            raise AuthError("Sign up succeeded but no user ID returned", email=email, step="create_account")

        # The profile insert is checked against the caller's session, so one must exist first
        logger.debug("sign_up_signing_in", account_id=created.account_id)
        signed_in = await self.provider.sign_in(email, password)
        if signed_in.error is not None:
            logger.warning(
                "sign_up_orphaned_account", account_id=created.account_id, step="sign_in"
            )
            raise AuthError(signed_in.error.message, email=email, step="sign_in")

        # TODO: remove the provider account when the profile insert fails (needs a service-role client)
        try:
            profile = await self.profiles.create(seed.with_id(created.account_id))
        except ConstraintError:
            logger.warning(
                "sign_up_orphaned_account", account_id=created.account_id, step="create_profile"
            )
            raise
        logger.info("sign_up_complete", account_id=created.account_id)
        return Registration(identity=signed_in.identity, profile=profile)
