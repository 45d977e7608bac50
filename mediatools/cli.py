"""Command-Line Interface handler for mediatools."""

import argparse
import json
import logging
import math
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config_loader import ConfigLoader, options_from_config
from .log_setup import setup_logging, setup_logging_from_config
from .models import MetadataFilter
from .transcriber import transcribe_audio, transcribe_audio_to_file, transcribe_audio_with_timestamps
from .image_metadata import extract_image_metadata, modify_image_datetime, modify_image_metadata
from .exceptions import MediaToolsError, ConfigurationError
from .utils import json_default

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

def parse_metadata_value(raw: str) -> Any:
    """Interprets a KEY=VALUE value: int, then float, then EXIF/ISO date, else string."""
    for convert in (int, float):
        try:
            value = convert(raw)
        except ValueError:
            continue
        if math.isfinite(value):
            return value
    for fmt in ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            pass
    return raw

def parse_assignments(assignments: List[str]) -> Dict[str, Any]:
    fields = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{item}'")
        fields[key.strip()] = parse_metadata_value(value)
    return fields

class CLIHandler:
    """Parses arguments and dispatches to the transcription and metadata operations."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="mediatools: transcribe audio files and read/write image EXIF metadata.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "-c", "--config",
            default=DEFAULT_CONFIG_PATH,
            help="Path to the configuration YAML file (optional if the default is missing)."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        transcribe = subparsers.add_parser("transcribe", help="Transcribe an audio file.")
        transcribe.add_argument("audio", help="Path to the audio file.")
        transcribe.add_argument("-o", "--output", default=None,
                                help="Write the transcript here (default: next to the audio, .txt).")
        transcribe.add_argument("--stdout", action="store_true",
                                help="Print the transcript instead of writing a file.")
        transcribe.add_argument("--timestamps", action="store_true",
                                help="Print timestamped segments as JSON.")
        transcribe.add_argument("--model", default=None, help="Override the ASR model.")
        transcribe.add_argument("--language", default=None, help="Override the spoken language code.")
        transcribe.add_argument("--translate", action="store_true", default=None,
                                help="Translate into English instead of transcribing.")
        transcribe.add_argument("--device", default=None, choices=["cuda", "cpu"],
                                help="Override the processing device.")

        metadata = subparsers.add_parser("metadata", help="Print image metadata as JSON.")
        metadata.add_argument("image", help="Path to the image file.")
        metadata.add_argument("--pick", nargs="+", default=(),
                              help="Groups (IFD0, ExifIFD, GPS) or tag names to include.")

        set_metadata = subparsers.add_parser("set-metadata", help="Write a copy of an image with new metadata.")
        set_metadata.add_argument("image", help="Path to the image file.")
        set_metadata.add_argument("fields", nargs="+", metavar="KEY=VALUE", help="Tags to set.")
        set_metadata.add_argument("-o", "--output", default=None, help="Path of the modified image.")

        set_datetime = subparsers.add_parser("set-datetime", help="Write a copy of an image with a new capture time.")
        set_datetime.add_argument("image", help="Path to the image file.")
        set_datetime.add_argument("datetime", help="New capture time, e.g. '2024-05-01 12:30:00'.")
        set_datetime.add_argument("-o", "--output", default=None, help="Path of the modified image.")

        return parser

    def _load_config(self, config_path: str) -> dict:
        if config_path == DEFAULT_CONFIG_PATH and not os.path.exists(config_path):
            logger.info(f"No {DEFAULT_CONFIG_PATH} found, using built-in defaults.")
            return {}
        return ConfigLoader().load_config(config_path)

    def _transcribe(self, args: argparse.Namespace, config: dict) -> None:
        options = options_from_config(
            config,
            model=args.model,
            language=args.language,
            translate=args.translate,
            device=args.device,
        )
        if args.timestamps:
            segments = transcribe_audio_with_timestamps(args.audio, options)
            print(json.dumps([vars(s) for s in segments], indent=2, ensure_ascii=False))
        elif args.stdout:
            print(transcribe_audio(args.audio, options))
        else:
            path = transcribe_audio_to_file(args.audio, args.output, options)
            print(path)

    def _metadata(self, args: argparse.Namespace) -> None:
        record = extract_image_metadata(args.image, MetadataFilter(pick=tuple(args.pick)))
        print(json.dumps(record, indent=2, ensure_ascii=False, default=json_default))

    def _set_metadata(self, args: argparse.Namespace) -> None:
        try:
            fields = parse_assignments(args.fields)
        except argparse.ArgumentTypeError as e:
            self.parser.error(str(e))
        print(modify_image_metadata(args.image, fields, args.output))

    def _set_datetime(self, args: argparse.Namespace) -> None:
        value = parse_metadata_value(args.datetime)
        if not isinstance(value, datetime):
            self.parser.error(f"Unrecognized date/time: {args.datetime}")
        print(modify_image_datetime(args.image, value, args.output))

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the command."""
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        setup_logging(log_level=log_level)

        try:
            config = self._load_config(args.config)
        except (ConfigurationError, FileNotFoundError) as e:
            logger.critical(f"Failed to load configuration from {args.config}: {e}")
            sys.exit(1)

        if config.get('log_dir'):
            setup_logging_from_config(config, log_level)

        handlers = {
            "transcribe": lambda: self._transcribe(args, config),
            "metadata": lambda: self._metadata(args),
            "set-metadata": lambda: self._set_metadata(args),
            "set-datetime": lambda: self._set_datetime(args),
        }
        try:
            handlers[args.command]()
            sys.exit(0)
        except (MediaToolsError, OSError, ValueError) as e:
            logger.error(f"{args.command} failed: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2)


def main() -> None:
    CLIHandler().run()
