from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SUITEKIT_", extra="ignore")

    # Paths
    # `{}` is the problem id, `$extension` one of the suite file extensions.
    suite_path_template: str = "testsuites/{}.$extension"
    base_dir: str = "."

    # Encodings
    extension_on_downloading: Literal["json", "toml", "yaml", "yml"] = "yaml"
    # Probe order when loading; every existing file is merged.
    extensions_on_judging: list[Literal["json", "toml", "yaml", "yml"]] = Field(
        default_factory=lambda: ["json", "toml", "yaml", "yml"]
    )

    # ZIP mining rules (json/toml/yaml/yml). Empty: archives yield no cases.
    zip_config_path: str = ""

    # Archive safety
    zip_max_files: int = 2000
    zip_max_uncompressed_bytes: int = 512 * 1024 * 1024  # 512MB
    zip_max_single_file_bytes: int = 64 * 1024 * 1024  # 64MB


SETTINGS = Settings()
