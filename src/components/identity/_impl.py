"""
UserResolver - maps a resolved session to a canonical user id.
"""

import logging
from collections.abc import Mapping
from typing import Any

from src.domain.entities import IdentityAssertion
from src.domain.errors import UnauthorizedError

from .ports import UserLookupPort

logger = logging.getLogger(__name__)


class UserResolver:
    def __init__(self, users: UserLookupPort):
        self.users = users

    def resolve_user_id(
        self, identity: IdentityAssertion | Mapping[str, Any] | None
    ) -> str:
        """
        Map a session to a user id.

        A user id carried by the session wins. Otherwise the email is looked
        up exactly; when several users share it the oldest one is taken and
        a warning is logged. Raises UnauthorizedError when neither works.
        """
        if not isinstance(identity, IdentityAssertion):
            identity = IdentityAssertion.from_session(identity)

        if identity.user_id:
            return identity.user_id

        if identity.email:
            matches = self.users.find_user_ids_by_email(identity.email, limit=2)
            if len(matches) > 1:
                logger.warning(
                    "Email %s matches more than one user, using %s",
                    identity.email, matches[0],
                )
            if matches:
                logger.warning(
                    "Resolved user id by email fallback: %s -> %s",
                    identity.email, matches[0],
                )
                return matches[0]
            logger.info("No user found with email %s", identity.email)

        raise UnauthorizedError()
