"""Handshake authentication for privileged WebSocket connections."""

import logging

from starlette.requests import HTTPConnection

from web.auth_utils import AuthenticationError, CredentialVerifier, ModeratorIdentity

logger = logging.getLogger(__name__)

NO_PASSWORD_SPECIFIED = "No password specified"


class ConnectionGate:
    """Authenticates a connection once, before any event routing is attached.

    Credentials come from the handshake query string (``username`` and
    ``password``). On success the identity is attached to the connection
    state; on failure AuthenticationError is raised and nothing else happens.
    """

    def __init__(self, verifier: CredentialVerifier):
        self.verifier = verifier

    async def authenticate(self, connection: HTTPConnection) -> ModeratorIdentity:
        logger.debug("New connection to the admin namespace")

        password = connection.query_params.get("password")
        if not password:
            logger.debug("No password specified")
            raise AuthenticationError(NO_PASSWORD_SPECIFIED)

        username = connection.query_params.get("username")
        if not username:
            logger.debug("No username specified")
            raise AuthenticationError()

        identity = await self.verifier.verify(username, password)
        del password

        connection.state.username = identity.username
        connection.state.user_id = identity.user_id
        logger.info(f"Successful connection to the admin namespace ({identity.username})")
        return identity
