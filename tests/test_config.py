from pathlib import Path

import pytest

from occmap.utils.io import PipelineConfig, load_config


def test_from_yaml_resolves_paths_against_project_root(config_file, input_dir):
    config = PipelineConfig.from_yaml(config_file)

    assert config.base_dir == input_dir
    assert config.resolved("points_path") == (input_dir / "data" / "occurrences.csv").resolve()
    assert config.map_2d_path == (input_dir / "outputs").resolve() / "occurrence_map.html"


def test_overrides_ignore_none(config_file, tmp_path):
    config = PipelineConfig.from_yaml(config_file, output_dir=tmp_path / "elsewhere", points_path=None)

    assert config.resolved("output_dir") == tmp_path / "elsewhere"
    assert config.points_path == Path("data/occurrences.csv")


def test_unknown_keys_are_rejected(tmp_path):
    config_path = tmp_path / "config" / "bad.yaml"
    config_path.parent.mkdir()
    config_path.write_text("pipeline:\n  points_pth: data/points.csv\n")

    with pytest.raises(ValueError, match="points_pth"):
        PipelineConfig.from_yaml(config_path)


def test_load_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_load_config_requires_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_resolved_rejects_non_path_fields():
    with pytest.raises(ValueError):
        PipelineConfig().resolved("taxon_col")
