"""
Connection configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

class DatabaseSettings(BaseSettings):
    """
    Database credentials loaded from PT_ORM_* environment variables or a .env file.
    """

    host: str = "localhost"
    port: int = 5432
    database: str = "postgres"
    user: str = "postgres"
    password: str = ""
    autocommit: bool = True

    model_config = SettingsConfigDict(env_prefix="PT_ORM_", env_file=".env", extra="ignore")

    def as_creds(self) -> dict:
        """
        Credentials in the shape Executor.establish_connection expects.
        """

        return {
            "host": self.host,
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "port": self.port,
        }
