from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from ..exceptions import DifferentTypesOfSuitesError, NoFileError, UnsubmittableError
from ..models import BatchCase, BuildCommand, InteractiveCase, JudgingCommand, LoadedCases
from ..settings import SETTINGS, Settings
from ..utils.paths import compress_paths
from .suite_cases import batch_cases, interactive_cases
from .suite_codec import (
    SerializableExtension,
    SuiteFileExtension,
    SuiteFilePath,
    load_suite,
    normalize_serializable_extension,
)
from .templates import PathTemplate, Template
from .zip_mining import ZipConfig, ZipLimits, load_zip_config

# Suite discovery + merge for one problem id.
#
# Probe order: configured schema extensions (caller's priority order), then zip.
# Every existing file is merged; batch and interactive cases never mix.

logger = logging.getLogger(__name__)


def _dedupe(extensions: Sequence[str]) -> tuple[SerializableExtension, ...]:
    seen: dict[SerializableExtension, None] = {}
    for ext in extensions:
        seen.setdefault(normalize_serializable_extension(ext))
    return tuple(seen)


@dataclass
class SuiteCaseLoader:
    path_template: Template[Path]
    extensions: Sequence[str]
    zip_config: ZipConfig = field(default_factory=ZipConfig)
    tester_builds: Mapping[str, Template[BuildCommand]] = field(default_factory=dict)
    tester_commands: Mapping[str, Template[JudgingCommand]] = field(default_factory=dict)
    zip_limits: ZipLimits | None = None

    def candidates(self, problem: str) -> list[tuple[Path, SuiteFileExtension]]:
        exts: list[SuiteFileExtension] = [*_dedupe(self.extensions), "zip"]
        return [(self.path_template.expand(problem, {"extension": ext}), ext) for ext in exts]

    def load_merging(self, problem: str) -> tuple[LoadedCases, str]:
        """Load every suite file of `problem`.

        Returns the cases and a compressed display string of the files used.
        """
        all_paths = self.candidates(problem)

        batch: list[BatchCase] = []
        interactive: list[InteractiveCase] = []
        used: list[str] = []

        for path, extension in all_paths:
            if not path.exists():
                logger.debug("probe %s: missing", path)
                continue
            filename = path.name
            if extension == "zip":
                mined = self.zip_config.load(path, filename=filename, limits=self.zip_limits)
                if mined:
                    batch.extend(mined)
                    used.append(str(path))
                continue

            suite = load_suite(SuiteFilePath(path=path, extension=extension))
            if suite.type == "batch":
                batch.extend(batch_cases(suite, filename=filename))
            elif suite.type == "interactive":
                interactive.extend(
                    interactive_cases(
                        suite,
                        tester_builds=self.tester_builds,
                        tester_commands=self.tester_commands,
                        filename=filename,
                        problem=problem,
                    )
                )
            else:
                raise UnsubmittableError(problem)
            used.append(str(path))

        if batch and interactive:
            raise DifferentTypesOfSuitesError()
        if not batch and not interactive:
            tried = [str(p) for p, _ in all_paths]
            raise NoFileError(tried, compress_paths(tried))

        display = compress_paths(used)
        if batch:
            logger.debug("%s: %d batch case(s) from %s", problem, len(batch), display)
            return LoadedCases(kind="batch", cases=tuple(batch)), display
        logger.debug("%s: %d interactive case(s) from %s", problem, len(interactive), display)
        return LoadedCases(kind="interactive", cases=tuple(interactive)), display


@dataclass(frozen=True)
class DownloadDestinations:
    """Where a scraper writes the suite of a problem."""

    path_template: Template[Path]
    scraping_extension: SerializableExtension = "yaml"

    def scraping(self, problem: str) -> SuiteFilePath:
        path = self.path_template.expand(problem, {"extension": self.scraping_extension})
        return SuiteFilePath(path=path, extension=self.scraping_extension)

    def zip(self, problem: str) -> Path:
        return self.path_template.expand(problem, {"extension": "zip"})


def path_template_from_settings(settings: Settings = SETTINGS) -> PathTemplate:
    return PathTemplate(template=settings.suite_path_template, base_dir=Path(settings.base_dir))


def build_loader(
    settings: Settings = SETTINGS,
    *,
    tester_builds: Mapping[str, Template[BuildCommand]] | None = None,
    tester_commands: Mapping[str, Template[JudgingCommand]] | None = None,
) -> SuiteCaseLoader:
    zip_config = ZipConfig()
    if settings.zip_config_path:
        zip_config = load_zip_config(Path(settings.base_dir) / settings.zip_config_path)
    return SuiteCaseLoader(
        path_template=path_template_from_settings(settings),
        extensions=list(settings.extensions_on_judging),
        zip_config=zip_config,
        tester_builds=dict(tester_builds or {}),
        tester_commands=dict(tester_commands or {}),
        zip_limits=ZipLimits(
            max_files=settings.zip_max_files,
            max_uncompressed_bytes=settings.zip_max_uncompressed_bytes,
            max_single_file_bytes=settings.zip_max_single_file_bytes,
        ),
    )


def build_download_destinations(settings: Settings = SETTINGS) -> DownloadDestinations:
    return DownloadDestinations(
        path_template=path_template_from_settings(settings),
        scraping_extension=settings.extension_on_downloading,
    )
