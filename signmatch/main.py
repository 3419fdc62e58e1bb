"""Command-line entry point for the sign recognition loop."""

import argparse
import logging
import sys
from contextlib import ExitStack
from typing import List, Optional

import cv2

from signmatch.config.settings import Config, load_config
from signmatch.core.exceptions import ApplicationError
from signmatch.core.logging_config import configure_logging, logging_manager
from signmatch.services.annotation_service import AnnotationService
from signmatch.services.pipeline import FramePipeline
from signmatch.services.signal_transport import LoggingSignalTransport, SerialSignalTransport
from signmatch.services.template_library import TemplateLibrary
from signmatch.services.webcam_service import WebcamService

logger = logging.getLogger("signmatch")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="signmatch",
        description="Recognize signs in a camera stream and send a signal when one is held.",
    )
    ap.add_argument("-c", "--config", default="match-settings.json",
                    help="settings file (JSON, YAML or OpenCV XML)")
    ap.add_argument("--dry-run", action="store_true",
                    help="log signals instead of opening the serial port")
    ap.add_argument("--headless", action="store_true",
                    help="do not open a display window")
    ap.add_argument("--log-level", default=None,
                    help="override the configured log level")
    return ap


def build_library(cfg: Config) -> TemplateLibrary:
    return TemplateLibrary.from_specs(
        cfg.templates,
        cfg.match_edge_params, cfg.vertical_segments, cfg.horizontal_segments,
    )


def run(cfg: Config, dry_run: bool = False, headless: bool = False) -> int:
    """Start every collaborator, run the loop, release everything."""
    library = build_library(cfg)
    if not library:
        logger.warning("no templates configured, no sign can ever be matched")

    with ExitStack() as stack:
        camera = stack.enter_context(WebcamService(cfg.camera))
        if dry_run:
            transport = stack.enter_context(LoggingSignalTransport())
        else:
            transport = stack.enter_context(SerialSignalTransport(cfg.serial_port, cfg.baud_rate))

        renderer = AnnotationService(cfg.window_name, headless=headless)
        stack.callback(renderer.close)
        logger.info(f"window name is {cfg.window_name}")

        pipeline = FramePipeline(cfg, library, camera, transport, renderer)
        pipeline.run()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Console-only logging while the settings file itself is being read
    configure_logging(log_level=args.log_level or "INFO")
    try:
        cfg = load_config(args.config)
    except ApplicationError as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    logging_manager.shutdown()
    configure_logging(
        log_level=args.log_level or cfg.log_level,
        log_dir=cfg.log_dir,
        enable_file_logging=cfg.enable_file_logging,
        structured_logging=cfg.structured_logging,
    )
    logger.info(f"OpenCV version : {cv2.__version__}")
    cfg.log_settings()

    try:
        return run(cfg, dry_run=args.dry_run, headless=args.headless)
    except ApplicationError as e:
        logger.error(f"ERROR: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
