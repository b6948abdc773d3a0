from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pyhere import here

CONFIG_PATH = Path(here(".")) / "config" / "default.yaml"

# Config fields holding file locations, resolved against base_dir
PATH_FIELDS = (
    "output_dir",
    "points_path",
    "protected_raster_path",
    "ranges_path",
    "ecoregions_path",
)


def load_config(config_path: Union[str, Path] = CONFIG_PATH) -> Dict:
    """Loads the YAML configuration file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")
    with open(config_path, "r") as f:
        config = yaml.safe_load(f)
    if not isinstance(config, dict):
        raise ValueError(f"Expected a YAML mapping in {config_path}")
    return config


@dataclass(frozen=True)
class PipelineConfig:
    """
    Input locations, output directory and display parameters for one run.

    Paths may be relative; they are resolved against ``base_dir`` by
    :meth:`resolved`. Nothing here touches the process working directory.
    """

    base_dir: Path = field(default_factory=Path.cwd)
    output_dir: Path = Path("outputs")
    points_path: Path = Path("data/occurrences.csv")
    protected_raster_path: Path = Path("data/protected_areas.tif")
    ranges_path: Path = Path("data/species_ranges.zip")
    ecoregions_path: Optional[Path] = Path("data/ecoregions.geojson")

    points_crs: str = "EPSG:4326"
    lon_col: str = "longitude"
    lat_col: str = "latitude"
    taxon_col: str = "taxon"
    protected_col: str = "protected"
    reproject_points: bool = False

    presence_threshold: float = 1.0

    count_col: str = "count"
    name_col: str = "name"
    elevation_scale: float = 1000
    map_2d_name: str = "occurrence_map.html"
    map_3d_name: str = "ecoregion_map_3d.html"

    def __post_init__(self):
        object.__setattr__(self, "base_dir", Path(self.base_dir))
        for name in PATH_FIELDS:
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, Path(value))

    def resolved(self, name: str) -> Optional[Path]:
        """Absolute location of a path field."""
        if name not in PATH_FIELDS:
            raise ValueError(f"{name} is not a path field. Expected one of {PATH_FIELDS}")
        value = getattr(self, name)
        if value is None:
            return None
        if value.is_absolute():
            return value
        return (self.base_dir / value).resolve()

    @property
    def map_2d_path(self) -> Path:
        return self.resolved("output_dir") / self.map_2d_name

    @property
    def map_3d_path(self) -> Path:
        return self.resolved("output_dir") / self.map_3d_name

    @property
    def labelled_points_output(self) -> Path:
        return self.resolved("output_dir") / "labelled_occurrences.csv"

    @property
    def cropped_raster_output(self) -> Path:
        return self.resolved("output_dir") / "protected_areas_cropped.tif"

    @property
    def ranges_output_dir(self) -> Path:
        return self.resolved("output_dir") / "ranges"

    @property
    def ecoregion_counts_output(self) -> Path:
        return self.resolved("output_dir") / "ecoregion_counts.geojson"

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Returns a copy with the non-None overrides applied."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown pipeline config keys: {sorted(unknown)}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path] = CONFIG_PATH, **overrides: Any) -> "PipelineConfig":
        """
        Builds the config from the ``pipeline`` section of a YAML file.

        When the file does not set ``base_dir`` the project root is taken to be
        the parent of the directory holding the file (i.e. ``config/..``).
        A relative ``base_dir`` is resolved the same way.
        """
        config_path = Path(config_path).resolve()
        raw = load_config(config_path)
        section = raw.get("pipeline", {})
        if not isinstance(section, dict):
            raise ValueError(f"'pipeline' section of {config_path} must be a mapping")

        values = dict(section)
        project_root = config_path.parent.parent
        base_dir = Path(values.get("base_dir", project_root))
        if not base_dir.is_absolute():
            base_dir = project_root / base_dir
        values["base_dir"] = base_dir

        config = cls.from_dict(values)
        return config.with_overrides(**overrides)
