# -*- coding: utf-8 -*-
import argparse
import logging
import sys

from faceresize.batch import log_settings, run_batch
from faceresize.config import DEFAULT_FORMAT, DEFAULT_SIZE, ResizeConfig
from faceresize.errors import ConfigError, FaceResizeError
from faceresize.resize import DEFAULT_JPEG_QUALITY, OUTPUT_FORMATS

__version__ = "1.0.0"

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(threadName)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: int) -> logging.Logger:
    """Attaches the console handler to the package logger and sets its level."""
    package_logger = logging.getLogger("faceresize")
    if not package_logger.handlers:
        log_handler = logging.StreamHandler()
        log_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        package_logger.addHandler(log_handler)
    package_logger.setLevel(level)
    return package_logger


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Batch resize a directory of images into squares, keeping detected faces in frame.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("img_path", help="Path to the folder of images to be resized.")
    parser.add_argument("-s", "--size", default=DEFAULT_SIZE,
                        help=f"Resize dimensions. Format: widthxheight (e.g. 800x600) (Default: {DEFAULT_SIZE}).")
    parser.add_argument("-f", "--format", dest="image_format", default=DEFAULT_FORMAT,
                        help=f"Desired output format ({', '.join(OUTPUT_FORMATS)}) (Default: {DEFAULT_FORMAT}).")
    parser.add_argument("-o", "--output-path", dest="output_path", default=None,
                        help="Folder to save the resized images. Default: beside each source image.")
    parser.add_argument("-q", "--jpeg-quality", type=int, choices=range(1, 101), metavar="[1-100]",
                        default=DEFAULT_JPEG_QUALITY, help=f"JPEG quality (1-100) (Default: {DEFAULT_JPEG_QUALITY}).")
    parser.add_argument("-j", "--workers", type=int, default=None,
                        help="Number of worker threads (Default: number of CPU cores).")
    parser.add_argument("--model-path", type=str, default=None,
                        help="Path to an OpenCV Haar cascade XML to use instead of the packaged frontal face model.")
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Enable detailed (DEBUG level) logging.")
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv=None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = ResizeConfig(
            input_path=args.img_path,
            size=args.size,
            output_format=args.image_format,
            output_path=args.output_path,
            jpeg_quality=args.jpeg_quality,
            workers=args.workers,
            model_path=args.model_path,
            verbose=args.verbose,
        )
    except ConfigError as e:
        parser.error(str(e))

    logger.info("===== Face Gravity Resize Started =====")
    log_settings(config)

    try:
        run_batch(config)
    except FaceResizeError as e:
        logger.critical(f"  -> Critical: {e}")
        logger.info("===== Face Gravity Resize Finished Abnormally =====")
        return 2
    except KeyboardInterrupt:
        logger.warning("\nOperation interrupted by user")
        return 1

    logger.info("===== Face Gravity Resize Finished =====")
    return 0


if __name__ == "__main__":
    sys.exit(main())
