"""Schema management for SQL-backed providers. Memory providers need none."""

from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for provider in domain.providers.values():
        if provider.conn_info["provider"] in _SQL_PROVIDERS:
            yield provider, create_engine(provider.conn_info["database_uri"])


def setup_db(domain: Domain):
    """Create tables for every aggregate and entity (orders, intents, carts, coupons)."""
    with domain.domain_context():
        for provider, engine in _sql_providers(domain):
            # Touching _dao registers the model with the provider's metadata
            records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
            for record in records:
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    with domain.domain_context():
        for provider, engine in _sql_providers(domain):
            provider._metadata.drop_all(engine)
