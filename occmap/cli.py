import typer
from pathlib import Path
from typing_extensions import Annotated
from typing import Optional

from occmap.utils.io import CONFIG_PATH
from occmap.commands.run import run_pipeline_wrapper
from occmap.commands.label import label_occurrences_wrapper
from occmap.commands.ranges import filter_ranges_wrapper
from occmap.commands.maps import render_occurrence_map, render_extruded_map
from occmap.commands.aggregate import aggregate_ecoregions_wrapper

app = typer.Typer(
    name="occmap",
    help="CLI tools for mapping species occurrences against protected areas and modelled ranges",
    add_completion=False,
)

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        help="Path to the pipeline YAML config.",
        exists=True, readable=True, resolve_path=True
    )
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")]


@app.command()
def run(
    config_path: ConfigOption = CONFIG_PATH,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            help="Override the configured output directory.",
            file_okay=False, dir_okay=True, resolve_path=True
        )
    ] = None,
    render: Annotated[bool, typer.Option("--render/--no-render", help="Write the 2D and 3D HTML maps.")] = True,
    verbose: VerboseOption = False,
) -> None:
    """
    Runs the full pipeline: label occurrences by protected-area status, filter
    species ranges to presence cells, write derived data and render both maps.
    """
    run_pipeline_wrapper(
        config_path=config_path,
        output_dir=output_dir,
        render=render,
        verbose=verbose,
    )


@app.command()
def label(
    config_path: ConfigOption = CONFIG_PATH,
    points_path: Annotated[
        Optional[Path],
        typer.Option(help="Occurrence table (CSV or Parquet). Defaults to the configured path.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    protected_raster_path: Annotated[
        Optional[Path],
        typer.Option(help="Protected-area raster. Defaults to the configured path.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option(help="Where to save the labelled occurrence table (CSV). Defaults to the configured output directory.",
                     writable=True, resolve_path=True)
    ] = None,
    cropped_raster_path: Annotated[
        Optional[Path],
        typer.Option(help="Optional: save the protected-area raster cropped to the occurrences.",
                     writable=True, resolve_path=True)
    ] = None,
    reproject_points: Annotated[
        bool,
        typer.Option("--reproject-points", help="Transform points into the raster CRS when the CRSs differ.")
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Labels each occurrence as inside (1) or outside (0) a protected area.
    """
    label_occurrences_wrapper(
        config_path=config_path,
        points_path=points_path,
        protected_raster_path=protected_raster_path,
        output_path=output_path,
        cropped_raster_path=cropped_raster_path,
        reproject_points=reproject_points,
        verbose=verbose,
    )


@app.command("filter-ranges")
def filter_ranges_command(
    config_path: ConfigOption = CONFIG_PATH,
    ranges_path: Annotated[
        Optional[Path],
        typer.Option(help="Zip archive or directory of species range GeoTIFFs. Defaults to the configured path.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(help="Directory to save the presence-only rasters. Defaults to 'ranges' in the configured output directory.",
                     file_okay=False, dir_okay=True, resolve_path=True)
    ] = None,
    threshold: Annotated[
        Optional[float], typer.Option(help="Minimum cell value counted as presence. Defaults to the configured threshold.")
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Masks each species range raster to its presence cells.
    """
    filter_ranges_wrapper(
        config_path=config_path,
        ranges_path=ranges_path,
        output_dir=output_dir,
        threshold=threshold,
        verbose=verbose,
    )


@app.command("map-2d")
def map_2d(
    labelled_points_path: Annotated[
        Path,
        typer.Option(..., help="Labelled occurrence table written by the label command.",
                     exists=True, readable=True, resolve_path=True)
    ],
    config_path: ConfigOption = CONFIG_PATH,
    cropped_raster_path: Annotated[
        Optional[Path],
        typer.Option(help="Optional: cropped protected-area raster to overlay.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option(help="HTML file to write. Defaults to the configured location.", resolve_path=True)
    ] = None,
    include_ranges: Annotated[
        bool, typer.Option("--ranges/--no-ranges", help="Overlay the presence-only species ranges.")
    ] = True,
    verbose: VerboseOption = False,
) -> None:
    """
    Renders the interactive 2D occurrence map.
    """
    render_occurrence_map(
        labelled_points_path=labelled_points_path,
        config_path=config_path,
        cropped_raster_path=cropped_raster_path,
        output_path=output_path,
        include_ranges=include_ranges,
        verbose=verbose,
    )


@app.command("map-3d")
def map_3d(
    config_path: ConfigOption = CONFIG_PATH,
    points_path: Annotated[
        Optional[Path],
        typer.Option(help="Occurrence table. Defaults to the configured path.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    ecoregions_path: Annotated[
        Optional[Path],
        typer.Option(help="Ecoregion polygons with a count attribute. Defaults to the configured path.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option(help="HTML file to write. Defaults to the configured location.", resolve_path=True)
    ] = None,
    elevation_scale: Annotated[
        Optional[float], typer.Option(help="Metres of extrusion per counted sample.")
    ] = None,
    offline: Annotated[bool, typer.Option("--offline", help="Embed the deck.gl bundle in the HTML.")] = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Renders the 3D map of ecoregions extruded by sample count.
    """
    render_extruded_map(
        config_path=config_path,
        points_path=points_path,
        ecoregions_path=ecoregions_path,
        output_path=output_path,
        elevation_scale=elevation_scale,
        offline=offline,
        verbose=verbose,
    )


@app.command("aggregate-ecoregions")
def aggregate_ecoregions(
    polygons_path: Annotated[
        Path,
        typer.Option(..., help="Ecoregion polygons.", exists=True, readable=True, resolve_path=True)
    ],
    config_path: ConfigOption = CONFIG_PATH,
    points_path: Annotated[
        Optional[Path],
        typer.Option(help="Occurrence table (CSV or Parquet). Defaults to the configured path.",
                     exists=True, readable=True, resolve_path=True)
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option(help="GeoJSON file to write. Defaults to 'ecoregion_counts.geojson' in the configured output directory.",
                     writable=True, resolve_path=True)
    ] = None,
    name_field: Annotated[
        Optional[str], typer.Option(help="Polygon attribute holding the ecoregion name. Defaults to the configured name_col.")
    ] = None,
    count_col: Annotated[Optional[str], typer.Option(help="Name of the count attribute to add.")] = None,
    lon_col: Annotated[Optional[str], typer.Option(help="Longitude column of the occurrence table.")] = None,
    lat_col: Annotated[Optional[str], typer.Option(help="Latitude column of the occurrence table.")] = None,
    taxon_col: Annotated[Optional[str], typer.Option(help="Taxon column of the occurrence table.")] = None,
    points_crs: Annotated[Optional[str], typer.Option(help="CRS of the occurrence coordinates.")] = None,
    taxon: Annotated[Optional[str], typer.Option(help="Optional: only count this taxon.")] = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Counts occurrences per ecoregion polygon for the 3D map.
    """
    aggregate_ecoregions_wrapper(
        polygons_path=polygons_path,
        config_path=config_path,
        points_path=points_path,
        output_path=output_path,
        name_field=name_field,
        count_col=count_col,
        lon_col=lon_col,
        lat_col=lat_col,
        taxon_col=taxon_col,
        points_crs=points_crs,
        taxon=taxon,
        verbose=verbose,
    )


if __name__ == "__main__":
    app()
