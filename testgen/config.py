"""Configuration management for the test scaffold generator."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GENERATED_MARKER = "/** @generated AUTO-GENERATED FILE - safe to overwrite */"


class Settings(BaseSettings):
    """Generator settings loaded from environment variables (``TESTGEN_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="TESTGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project layout
    root_dir: Path = Field(default_factory=Path.cwd, description="Project root (where the runner is invoked)")
    src_dir: str = Field("src", description="Source directory scanned in 'all' mode, relative to root_dir")
    tests_dir_name: str = Field("__tests__", description="Directory that receives generated test files")
    source_extensions: list[str] = Field(
        default_factory=lambda: [".tsx", ".jsx"],
        description="Markup-capable extensions treated as component sources",
    )
    ignore_dirs: list[str] = Field(
        default_factory=lambda: ["node_modules", "dist", "build", ".next", "coverage", "__tests__", "__test__"],
        description="Directory names never scanned",
    )
    path_aliases: dict[str, str] = Field(
        default_factory=lambda: {"@/": "src/"},
        description="Import prefix rewrites used to follow type imports",
    )

    # Output
    generated_marker: str = Field(GENERATED_MARKER, description="Leading marker line of generated files")
    render_helper_module: Optional[str] = Field(
        None,
        description="Import specifier of a custom render helper (e.g. '@/test-utils/renderWithProviders')",
    )
    render_helper_name: str = Field("renderWithProviders", description="Exported name of the custom render helper")
    variants_enabled: bool = Field(True, description="Emit boolean prop variant renders in pass 2")
    max_presence_checks: int = Field(2, description="Presence checks per element kind in the render scenario")

    # Coverage feedback loop
    coverage_enabled: bool = Field(True, description="Run the coverage feedback loop after pass 1")
    coverage_threshold: float = Field(50.0, description="Line coverage (%) below which pass 2 is generated")
    coverage_dir: str = Field("coverage", description="Coverage artifact directory, relative to root_dir")
    runner_command: list[str] = Field(
        default_factory=lambda: ["npx", "jest"],
        description="Command prefix used to run one test file",
    )
    runner_timeout: Optional[float] = Field(None, description="Runner timeout in seconds (none waits forever)")

    # Watch mode
    watch_debounce_ms: int = Field(1600, description="Quiet period before a burst of file changes is processed")

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    json_logs: bool = Field(False, description="Render logs as JSON")

    @field_validator("coverage_threshold")
    @classmethod
    def _threshold_is_percentage(cls, value: float) -> float:
        if not 0.0 <= value <= 100.0:
            raise ValueError("coverage_threshold must be between 0 and 100")
        return value

    @field_validator("source_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @property
    def source_root(self) -> Path:
        return (self.root_dir / self.src_dir).resolve()

    @property
    def coverage_path(self) -> Path:
        return (self.root_dir / self.coverage_dir).resolve()


def get_settings(**overrides) -> Settings:
    """Get generator settings, with explicit overrides taking precedence over the environment."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
