from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    log_dir: str = "./logs"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "postgres"
    db_username: str = "postgres"
    db_password: str = ""
    db_schema_search_path: str = "etl,public"
    db_sslmode: str = "prefer"
    db_pool_min: int = 1
    db_pool_max: int = 10
    db_connect_timeout_seconds: int = 10

    aws_region: str = "us-east-1"
    s3_bucket: str = "dev-incisive-data-csv"
    s3_endpoint_url: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    batch_size: int = Field(default=100, ge=1)

    orders_source_path: str = ""
    lab_product_source_path: str = ""
    lab_practice_source_path: str = ""
    lab_product_mapping_source_path: str = ""
    lab_practice_mapping_source_path: str = ""
    dental_groups_source_path: str = ""
