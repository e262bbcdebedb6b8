from .database import Base, create_database_engines, make_get_db, resolve_async_url
from .internal_auth import make_internal_token_verifier
from .kafka import KafkaNotConfiguredError, kafka_enabled, kafka_producer
from .observability import configure_logging, configure_observability
from .security import (
	CurrentUser,
	bearer_scheme,
	decode_access_token,
	encode_token,
	make_get_current_user,
)

__all__ = [
	# Database
	"Base",
	"create_database_engines",
	"make_get_db",
	"resolve_async_url",
	# Events
	"KafkaNotConfiguredError",
	"kafka_enabled",
	"kafka_producer",
	# Observability
	"configure_logging",
	"configure_observability",
	# Security
	"CurrentUser",
	"bearer_scheme",
	"decode_access_token",
	"encode_token",
	"make_get_current_user",
	# Internal auth
	"make_internal_token_verifier",
]
