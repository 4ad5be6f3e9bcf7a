from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Catalog used on start-up and on reset; empty means the bundled default
    DEFAULT_CATALOG_PATH: str = ""
    DEEP_VALIDATION: bool = False

    # Derive selection completeness from required modules; False = always configured on add
    DERIVE_CONFIGURED: bool = True

    MESSAGE_DISPLAY_LIMIT: int = 6
    EXPORT_FILENAME_PREFIX: str = "infrastructure-config"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CONFIGURATOR_", extra="ignore",
    )


settings = Settings()
