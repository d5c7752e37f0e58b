"""Config file."""
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("ens-indexer", alias="PROJECT_NAME")

    # DATABASE
    postgres_user: str = Field("postgres", alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(SecretStr("postgres"), alias="POSTGRES_PASSWORD")
    postgres_server: str = Field("localhost", alias="POSTGRES_SERVER")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str = Field("ens_indexer", alias="POSTGRES_DB")
    database_url: str | None = None
    sync_database_url: str | None = None
    upsert_chunk_size: int = Field(1_000, alias="UPSERT_CHUNK_SIZE")

    # CHAIN
    rpc_url: str = Field("http://localhost:8545", alias="RPC_URL")
    rpc_timeout_seconds: int = Field(30, alias="RPC_TIMEOUT_SECONDS")
    ens_registrar_address: str = Field(
        "0x57f1887a8bf19b14fc0df6fd9b2acc9af147ea85",
        alias="ENS_REGISTRAR_ADDRESS",
    )
    ens_registrar_start_block: int = Field(9_380_410, alias="ENS_REGISTRAR_START_BLOCK")
    blocks_per_batch: int = Field(1_000, alias="BLOCKS_PER_BATCH")

    # METADATA
    ens_metadata_base_url: str = Field(
        "https://metadata.ens.domains/mainnet",
        alias="ENS_METADATA_BASE_URL",
    )
    metadata_timeout_seconds: float = Field(10.0, alias="METADATA_TIMEOUT_SECONDS")
    metadata_concurrency: int = Field(8, alias="METADATA_CONCURRENCY")

    @model_validator(mode="after")
    def assemble_db_urls(self) -> "Settings":
        user = quote_plus(self.postgres_user)
        password = quote_plus(self.postgres_password.get_secret_value())
        host = self.postgres_server
        port = self.postgres_port
        db = self.postgres_db

        if not self.database_url:
            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        if not self.sync_database_url:
            self.sync_database_url = f"postgresql://{user}:{password}@{host}:{port}/{db}"

        self.ens_registrar_address = self.ens_registrar_address.lower()
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )


settings: Settings = Settings()
