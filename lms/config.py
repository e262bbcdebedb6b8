from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	app_name: str = "LMS API"
	api_prefix: str = "/api/v1"
	database_url: str
	database_url_async: str | None = None
	run_migrations_on_startup: bool = True
	jwt_secret: str
	jwt_algorithm: str = "HS256"
	access_token_expire_minutes: int = 15
	refresh_token_expire_days: int = 30
	# Shared secret for /internal/* calls; unset disables the check
	internal_token: str | None = None

	# Monitoring
	metrics_enabled: bool = True
	log_level: str = "INFO"

	# Connection pool (ignored for SQLite)
	db_pool_size: int = 10
	db_max_overflow: int = 20
	db_pool_timeout: int = 30
	db_pool_recycle: int = 1800

	# Commerce
	currency: str = "IDR"
	payment_webhook_secret: str | None = None
	payment_simulation_enabled: bool = False
	yookassa_shop_id: str | None = None
	yookassa_secret_key: str | None = None
	public_base_url: str | None = None  # e.g. https://lms.example.com

	# Domain events
	kafka_broker_url: str | None = None
	kafka_topic_prefix: str = "lms"

	# Object storage (MinIO / S3)
	s3_endpoint: str | None = None
	s3_region: str | None = None
	s3_access_key: str | None = None
	s3_secret_key: str | None = None
	s3_use_ssl: bool = False
	s3_bucket_assets: str = "lms-assets"

	# Recommendations (Ollama-compatible /api/generate)
	recommendations_llm_url: str | None = None
	recommendations_llm_model: str = "llama3.2"
	recommendations_llm_timeout: float = 10.0

	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
	return Settings()
