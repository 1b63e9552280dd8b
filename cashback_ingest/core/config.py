from pydantic import ConfigDict, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql://postgres@localhost:5432/test"
    log_level: str = "INFO"
    log_file: str = "error.log"  # Append-only diagnostics sink

    # Connection pool (one pool per upload request)
    db_pool_min_size: int = 4      # Connections kept open in the pool
    db_pool_max_size: int = 50     # Hard ceiling on concurrent connections
    db_pool_timeout_seconds: int = 30
    db_statement_timeout_ms: int = 0  # 0 disables the Postgres statement_timeout

    # Ingestion pipeline
    ingest_worker_count: int = 50
    ingest_queue_size: int = 100
    ingest_request_timeout_seconds: int = 3600  # 0 = wait forever
    ingest_progress_every: int = 100

    model_config = ConfigDict(env_file=".env", extra="ignore")

    @model_validator(mode="after")
    def _check_limits(self):
        if self.db_pool_min_size < 1:
            raise ValueError("db_pool_min_size must be at least 1")
        if self.db_pool_max_size < self.db_pool_min_size:
            raise ValueError("db_pool_max_size must be >= db_pool_min_size")
        if self.ingest_worker_count < 1:
            raise ValueError("ingest_worker_count must be at least 1")
        if self.ingest_queue_size < 1:
            raise ValueError("ingest_queue_size must be at least 1 (the work queue is always bounded)")
        if self.ingest_progress_every < 1:
            raise ValueError("ingest_progress_every must be at least 1")
        return self


settings = Settings()
