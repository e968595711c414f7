"""
Command-Line Entry Points
=========================
This module wires the configuration, the algorithms and the file writers
together for the two tools.

Why is this file needed?
------------------------
It acts as the orchestration root. It:
1. Parses the command line (`geogen`, `eurekagen`, or
   `python -m compositegen {geo,partition}`).
2. Sets up logging once per invocation.
3. Turns every CompositeGenError or OSError into an ERROR log line and exit
   status 1, so no traceback reaches the user for expected failures.
"""
from __future__ import annotations

import argparse
import logging
from typing import Callable, Optional, Sequence

from compositegen import __version__
from compositegen.config import DomainConfig, GeneratorConfig
from compositegen.controller.mesh import TetMesh
from compositegen.controller.partition import PartitionBuilder
from compositegen.controller.placement import PlacementEngine
from compositegen.errors import CompositeGenError
from compositegen.logging_config import setup_logging
from compositegen.model.io import IOManager
from compositegen.utils import timer

logger = logging.getLogger(__name__)

DEFAULT_CONTROL_POINTS = "GeoGen.mat"

GEOGEN_DESC = """Places non-overlapping cylinders and spheres in a box and writes a
Gmsh geometry script (.geo) plus the particle control-point file.

The configuration file holds `key = value` lines; a `material` line opens a
new material block, for example:

    length = 10000
    width = 5000
    height = 5500
    rand_seed = 42

    material = fiber
    morph = cylinder
    vol_frac = 0.01
    rad_distrib = uniform
    rad_min = 80
    rad_max = 120
    len_distrib = gaussian
    len_mean = 1000
    len_std_dev = 100
"""

EUREKAGEN_DESC = """Reads a tetrahedral Gmsh mesh (MSH 2.2 ASCII) and the control-point
file of the generator, and writes the partitioned mesh (.dat) with boundary,
region and material groups.
"""


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '-f', '--config', required=True, metavar='FILE', help='path to the configuration file'
    )
    parser.add_argument(
        '-m', '--materials', default=DEFAULT_CONTROL_POINTS, metavar='FILE',
        help=f'path to the particle control-point file (default: {DEFAULT_CONTROL_POINTS})'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true', help='output detailed information'
    )
    parser.add_argument(
        '--log-file', metavar='FILE', help='also write the log to this file'
    )


def build_geogen_parser(parser: Optional[argparse.ArgumentParser] = None) -> argparse.ArgumentParser:
    if parser is None:
        parser = argparse.ArgumentParser(
            prog='geogen', description=GEOGEN_DESC, formatter_class=argparse.RawTextHelpFormatter
        )
    _add_common_arguments(parser)
    parser.add_argument(
        '-o', '--output', required=True, metavar='FILE', help='path of the geometry script to write'
    )
    parser.add_argument(
        '--mesh', metavar='FILE', help='also mesh the script with Gmsh and write MSH 2.2 to FILE'
    )
    parser.add_argument(
        '--plot', action='store_true', help='show the placed particles in a 3D plot'
    )
    parser.set_defaults(handler=run_geogen)
    return parser


def build_eurekagen_parser(parser: Optional[argparse.ArgumentParser] = None) -> argparse.ArgumentParser:
    if parser is None:
        parser = argparse.ArgumentParser(
            prog='eurekagen', description=EUREKAGEN_DESC, formatter_class=argparse.RawTextHelpFormatter
        )
    _add_common_arguments(parser)
    parser.add_argument(
        '-i', '--input', required=True, metavar='FILE', help='path of the tetrahedral mesh to read'
    )
    parser.add_argument(
        '-o', '--output', required=True, metavar='FILE', help='path of the partitioned mesh to write'
    )
    parser.set_defaults(handler=run_eurekagen)
    return parser


@timer
def run_geogen(args: argparse.Namespace) -> int:
    config = GeneratorConfig.from_file(args.config)

    # Nothing is written unless every particle was placed
    result = PlacementEngine(config).run()

    IOManager.save_geo_script(result.script, args.output)
    IOManager.write_control_points(result.layout, args.materials)

    if args.mesh:
        # Delayed import: Gmsh is only loaded when meshing is requested
        from compositegen.controller.mesher import GmshMesher
        GmshMesher().mesh_geo_file(args.output, args.mesh)

    if args.plot:
        result.layout.plot(config.domain)
    return 0


@timer
def run_eurekagen(args: argparse.Namespace) -> int:
    domain = DomainConfig.from_file(args.config)
    layout = IOManager.read_control_points(args.materials)
    mesh = TetMesh.from_file(args.input)

    partition = PartitionBuilder(layout, domain).build(mesh)

    IOManager.write_partitioned_mesh(mesh, partition, args.output)
    return 0


def _dispatch(args: argparse.Namespace, handler: Callable[[argparse.Namespace], int]) -> int:
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)
    try:
        return handler(args)
    except (CompositeGenError, OSError) as e:
        logger.error(f"{e} Exiting..")
        return 1


def geogen(argv: Optional[Sequence[str]] = None) -> int:
    args = build_geogen_parser().parse_args(argv)
    return _dispatch(args, args.handler)


def eurekagen(argv: Optional[Sequence[str]] = None) -> int:
    args = build_eurekagen_parser().parse_args(argv)
    return _dispatch(args, args.handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='compositegen', description='Composite microstructure generator and mesh partitioner.'
    )
    parser.add_argument('-V', '--version', action='version', version=__version__)
    subparsers = parser.add_subparsers(dest='command', required=True)

    build_geogen_parser(subparsers.add_parser(
        'geo', help='place particles and write the geometry script',
        description=GEOGEN_DESC, formatter_class=argparse.RawTextHelpFormatter,
    ))
    build_eurekagen_parser(subparsers.add_parser(
        'partition', help='partition a tetrahedral mesh',
        description=EUREKAGEN_DESC, formatter_class=argparse.RawTextHelpFormatter,
    ))

    args = parser.parse_args(argv)
    return _dispatch(args, args.handler)


if __name__ == "__main__":
    raise SystemExit(main())
