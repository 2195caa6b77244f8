from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    fixed_capacity: int = 1024
    growable_initial_capacity: int = 4
    wrap_reads: bool = False
    size_type: str = "uint64"
    legacy_deque_order: bool = False

    model_config = SettingsConfigDict(env_prefix="BINSER_")


settings = Settings()
