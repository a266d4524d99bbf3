"""
Configuration for Quantum Route Navigator.

Settings are read from environment variables (or a local ``.env`` file)
through pydantic-settings and cached for the lifetime of the process.
Tests build their own ``Settings(...)`` instances and pass them in.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Every field maps to an environment variable of the same name, e.g.
    ``QUBO_PENALTY=25 DEFAULT_SAMPLER=annealing uvicorn route_navigator.main:app``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # --- service ---
    APP_NAME: str = "Quantum Route Navigator"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "staging", "production", "testing"] = "development"
    HOST: str = "0.0.0.0"
    PORT: int = Field(default=8000, ge=1, le=65535)
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated allowed origins, empty for any"
    )

    # --- problem limits ---
    # the QUBO has n*n*v variables and is stored densely
    MAX_NODES: int = Field(default=15, ge=1, description="Nodes per problem, depot included")
    MAX_VEHICLES: int = Field(default=5, ge=1)
    DEFAULT_MAX_DISTANCE: int = Field(default=100, ge=1, description="Upper bound for generated distances")
    COORDINATE_RADIUS: float = Field(default=100.0, gt=0, description="Radius of the generated node circle")

    # --- QUBO and samplers ---
    QUBO_PENALTY: float = Field(default=10.0, gt=0)
    DEFAULT_SAMPLER: Literal["jittered", "annealing"] = "jittered"
    SAMPLER_JITTER: float = Field(default=0.25, ge=0.0, lt=1.0, description="Relative distance noise")
    SAMPLER_SEED: Optional[int] = None

    ANNEALING_MAX_ITER: int = Field(default=5000, ge=1)
    ANNEALING_TEMP_INIT: float = Field(default=100.0, gt=0)
    ANNEALING_TEMP_MIN: float = Field(default=0.01, gt=0)
    ANNEALING_COOLING_RATE: float = Field(default=0.995, gt=0, lt=1)
    ANNEALING_TIMEOUT: float = Field(default=5.0, gt=0, description="Seconds")

    # QAOA values only label runs and seed the diagnostics
    QAOA_LAYERS: int = Field(default=1, ge=1)
    QAOA_SHOTS: int = Field(default=1000, ge=1)
    QAOA_BACKEND: Literal[
        "qasm_simulator", "aer_simulator", "ibmq_lima", "ibmq_belem", "ibmq_quito"
    ] = "qasm_simulator"

    # --- observability ---
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    METRICS_ENABLED: bool = True

    @field_validator("ENVIRONMENT", "DEFAULT_SAMPLER", "LOG_FORMAT", mode="before")
    @classmethod
    def _lowercase(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _uppercase(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _check_annealing_schedule(self) -> "Settings":
        if self.ANNEALING_TEMP_MIN >= self.ANNEALING_TEMP_INIT:
            raise ValueError("ANNEALING_TEMP_MIN must be below ANNEALING_TEMP_INIT")
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings()
