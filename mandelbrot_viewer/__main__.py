"""
Command-line entry point: python -m mandelbrot_viewer [options]
"""

import logging
from argparse import ArgumentParser

from .app import run
from .config import AppConfig, ConfigError, load_settings


def build_parser():
    parser = ArgumentParser(
        prog='mandelbrot-viewer',
        description='Interactive Mandelbrot set explorer. Arrow keys or drag to pan, '
                    '+/- or scroll to zoom, R or right click to reset, S to save, Esc to quit.')

    parser.add_argument('--width', type=int, dest='width',
                        help='window width in pixels', metavar='WIDTH')

    parser.add_argument('--height', type=int, dest='height',
                        help='window height in pixels', metavar='HEIGHT')

    parser.add_argument('--max-iterations', type=int, dest='max_iter',
                        help='maximum number of iterations per point',
                        metavar='MAX_ITERATIONS')

    parser.add_argument('--fps', type=int, dest='max_fps',
                        help='frame rate cap', metavar='FPS')

    parser.add_argument('--center-x', type=float, dest='center_x',
                        help='real part of the starting view center', metavar='CENTER_X')

    parser.add_argument('--center-y', type=float, dest='center_y',
                        help='imaginary part of the starting view center', metavar='CENTER_Y')

    parser.add_argument('--zoom', type=float, dest='zoom',
                        help='starting zoom factor (1 shows the whole set)', metavar='ZOOM')

    parser.add_argument('--workers', type=int, dest='workers',
                        help='render threads (default: one per CPU)', metavar='WORKERS')

    parser.add_argument('--config', dest='config_path',
                        help='settings JSON file (default: settings.json next to the package)',
                        metavar='PATH')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='log debug output')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    overrides = vars(args)
    settings = load_settings(overrides.pop('config_path'))
    overrides.pop('verbose')
    try:
        config = AppConfig.from_settings(settings).with_overrides(**overrides).validate()
    except ConfigError as e:
        parser.error(str(e))

    run(config)


if __name__ == "__main__":
    main()
