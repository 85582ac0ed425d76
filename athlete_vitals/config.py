from __future__ import annotations

from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .env import get_env

try:  # pragma: no cover - Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    try:
        import tomli as tomllib  # type: ignore
    except ModuleNotFoundError:
        tomllib = None  # type: ignore

PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_DATASETS: dict[str, Path] = {
    "alex": PACKAGE_DATA_DIR / "athlete_alex.csv",
    "jordan": PACKAGE_DATA_DIR / "athlete_jordan.csv",
}
DEFAULT_ATHLETE = "alex"


@dataclass(frozen=True)
class Thresholds:
    hr_high: float = 100.0
    spo2_low: float = 92.0
    stress_high: float = 70.0
    systolic_high: float = 140.0
    diastolic_high: float = 90.0
    apnea_events_high: float = 5.0
    body_fat_high: float = 20.0  # not personalised by position
    energy_low: float = 60.0
    antioxidant_low: float = 40.0


@dataclass(frozen=True)
class AppConfig:
    thresholds: Thresholds = Thresholds()
    datasets: Mapping[str, Path] = field(default_factory=lambda: dict(DEFAULT_DATASETS))


def _config_path() -> Path | None:
    """Resolve the TOML configuration file, if present."""
    env_override = get_env("CONFIG")
    if env_override:
        path = Path(env_override).expanduser()
        return path if path.exists() else None

    default_path = Path("config/athlete_vitals.toml")
    if default_path.exists():
        return default_path
    return None


def _load_toml(path: Path) -> Mapping[str, Any]:
    if tomllib is None:
        raise RuntimeError("TOML configuration requires Python 3.11+ or the 'tomli' package.")
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce_thresholds(raw: Mapping[str, Any] | None) -> Thresholds:
    base = Thresholds()
    if not raw:
        return base
    values: dict[str, float] = {}
    for item in fields(Thresholds):
        try:
            values[item.name] = float(raw.get(item.name, getattr(base, item.name)))
        except (TypeError, ValueError):
            values[item.name] = getattr(base, item.name)
    return Thresholds(**values)


def _coerce_datasets(raw: Any, *, base_dir: Path) -> dict[str, Path]:
    datasets = dict(DEFAULT_DATASETS)
    if not isinstance(raw, Mapping):
        return datasets
    for key, value in raw.items():
        name = str(key).strip().lower()
        if not name or not isinstance(value, str) or not value.strip():
            continue
        path = Path(value.strip()).expanduser()
        datasets[name] = path if path.is_absolute() else base_dir / path
    return datasets


def _build_config(raw: Mapping[str, Any], *, base_dir: Path) -> AppConfig:
    thresholds_section = raw.get("thresholds")
    thresholds = _coerce_thresholds(thresholds_section if isinstance(thresholds_section, Mapping) else None)
    datasets = _coerce_datasets(raw.get("datasets"), base_dir=base_dir)
    return AppConfig(thresholds=thresholds, datasets=datasets)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load configuration once, falling back to built-in defaults."""
    path = _config_path()
    if not path:
        return AppConfig()
    data = _load_toml(path)
    return _build_config(data, base_dir=path.parent)


def as_dict() -> dict[str, Any]:
    """Return the effective configuration for debug/CLI display."""
    config = get_config()
    return {
        "thresholds": {item.name: getattr(config.thresholds, item.name) for item in fields(Thresholds)},
        "datasets": {key: str(path) for key, path in sorted(config.datasets.items())},
        "source": str(_config_path() or "defaults"),
    }
