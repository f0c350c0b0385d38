"""Command line entry point: convert a mesh file into a BeamNG terrain."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import ValidationError

from .config import settings
from .core.pipeline import ConversionOptions, TerrainConverter
from .formats.mesh_loader import load_mesh
from .formats.preview import write_preview
from .formats.terrain import write_terrain
from .utils.log import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gltf2hm",
        description="Convert a triangle mesh into a BeamNG terrain heightmap",
    )
    parser.add_argument("input", help="Input mesh file (.glb, .gltf, ...)")
    parser.add_argument(
        "-o", "--output",
        help="Output path without extension (defaults to the input path)",
    )
    parser.add_argument(
        "-s", "--size", type=int, default=settings.resolution,
        help="Resolution of the heightmap",
    )
    parser.add_argument(
        "--smooth", type=float, default=settings.smooth,
        help="Smoothing tolerance (0 disables)",
    )
    parser.add_argument(
        "--flip-x", action=argparse.BooleanOptionalAction, default=settings.flip_x,
        help="Flip the heightmap on the X axis",
    )
    parser.add_argument(
        "--flip-y", action=argparse.BooleanOptionalAction, default=settings.flip_y,
        help="Flip the heightmap on the Y axis",
    )
    parser.add_argument(
        "--interpolate", action=argparse.BooleanOptionalAction, default=settings.interpolate,
        help="Interpolate remaining gaps along rows and columns",
    )
    parser.add_argument(
        "--beamng", action=argparse.BooleanOptionalAction, default=settings.export_terrain,
        help="Export BeamNG .ter file",
    )
    parser.add_argument(
        "--heightmap", action=argparse.BooleanOptionalAction, default=settings.export_heightmap,
        help="Export heightmap .png file",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument(
        "--log-format", default=settings.log_format, choices=["plain", "json"],
        help="Logging format",
    )
    return parser


def run(args: argparse.Namespace) -> List[Path]:
    """
    Run one conversion and write the requested outputs.

    Nothing is written unless the mesh loads and converts successfully.

    Returns:
        Paths of the files written
    """
    options = ConversionOptions(
        resolution=args.size,
        smooth=args.smooth,
        flip_x=args.flip_x,
        flip_y=args.flip_y,
        interpolate=args.interpolate,
    )
    input_path = Path(args.input)
    output_base = Path(args.output) if args.output else input_path.with_suffix("")

    mesh = load_mesh(input_path)
    converter = TerrainConverter(options)
    grid = converter.convert(mesh)
    record = converter.encode(grid) if args.beamng else None

    written = []
    if args.heightmap:
        written.append(write_preview(grid, output_base.with_name(output_base.name + ".png")))
    if record is not None:
        written.append(write_terrain(record, output_base.with_name(output_base.name + ".ter")))
    return written


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    logger.info("Converting mesh", input=args.input, size=args.size)
    try:
        written = run(args)
    except ValidationError as e:
        logger.error("Invalid options", error=str(e))
        return 1
    except (OSError, ValueError) as e:
        logger.error(
            "Conversion failed",
            error=str(e),
            path=getattr(e, "filename", None) or args.input,
        )
        return 1

    logger.info("Done", outputs=[str(p) for p in written])
    return 0


if __name__ == "__main__":
    sys.exit(main())
