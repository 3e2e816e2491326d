"""Configuration: report options passed in-process, settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_TITLE = "Scientific Photography Contest - Classification Ranking"
DEFAULT_AVERAGE_TITLE = "Scientific Photography Contest - Final Averaged Ranking"
DEFAULT_COPYRIGHT = "© {year} PhotoJudge. Scientific Photography Unit."


@dataclass(frozen=True)
class ReportOptions:
    """Recognized report options. An empty title falls back to the default title."""

    title: str = ""
    hide_observations: bool = False
    main_name_label: str = "Image Name"
    item_name_label: str | None = None
    copyright_text: str = DEFAULT_COPYRIGHT

    @property
    def resolved_title(self) -> str:
        return self.title or DEFAULT_TITLE

    @classmethod
    def for_average(cls, title: str = "") -> "ReportOptions":
        """Averaged ranking preset: contestant and image name columns, no observations."""
        return cls(
            title=title or DEFAULT_AVERAGE_TITLE,
            hide_observations=True,
            main_name_label="Contestant Name",
            item_name_label="Image Name",
        )


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    log_dir: Path
    assets_dir: Path
    report_title: str
    contestant_root: str
    scan_workers: int


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Read settings from the environment (after loading .env if present)."""
    load_dotenv(env_file)
    root = Path.cwd()
    try:
        workers = int(os.environ.get("PHOTOJUDGE_SCAN_WORKERS", "4"))
    except ValueError:
        workers = 4
    return Settings(
        data_dir=Path(os.environ.get("PHOTOJUDGE_DATA_DIR", root / "data")),
        log_dir=Path(os.environ.get("PHOTOJUDGE_LOG_DIR", root / "logs")),
        assets_dir=Path(os.environ.get("PHOTOJUDGE_ASSETS_DIR", root / "assets")),
        report_title=os.environ.get("PHOTOJUDGE_REPORT_TITLE", ""),
        contestant_root=os.environ.get("PHOTOJUDGE_CONTESTANT_ROOT", "CONCURSANTES"),
        scan_workers=max(1, workers),
    )
