"""Process-wide moderation services, built once at startup."""

import logging
from dataclasses import dataclass

from config.settings import AppConfig
from debate_engine.database import DatabaseManager
from web.audience_hub import AudienceHub
from web.auth_database import AuthDatabaseManager
from web.auth_utils import CredentialVerifier
from web.connection_gate import ConnectionGate
from web.event_router import PrivilegedEventRouter
from web.moderation_store import ModerationStore
from web.persistence import PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass
class ModerationServices:
    """Everything the privileged and audience endpoints share."""

    config: AppConfig
    persistence: PersistenceGateway
    store: ModerationStore
    hub: AudienceHub
    gate: ConnectionGate
    router: PrivilegedEventRouter


def build_services(config: AppConfig, bcrypt_rounds: int | None = None) -> ModerationServices:
    """Create the database schema and wire the moderation components together."""
    db_path = config.persistence.database_path

    # Creates every table, including the admins table read by AuthDatabaseManager
    discussions = DatabaseManager(db_path)
    persistence = PersistenceGateway(
        discussions,
        AuthDatabaseManager(db_path),
        timeout=config.persistence.timeout_seconds,
    )

    first_debate_id = persistence.first_free_debate_id()
    logger.info(f"Debate ids start at {first_debate_id}")

    store = ModerationStore(first_debate_id=first_debate_id)
    hub = AudienceHub()

    verifier = (
        CredentialVerifier(persistence, rounds=bcrypt_rounds)
        if bcrypt_rounds is not None
        else CredentialVerifier(persistence)
    )

    return ModerationServices(
        config=config,
        persistence=persistence,
        store=store,
        hub=hub,
        gate=ConnectionGate(verifier),
        router=PrivilegedEventRouter(store, persistence, hub, config.debate),
    )
