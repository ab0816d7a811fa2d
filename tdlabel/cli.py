"""
Command-line front end.

Usage:
    tdlabel -f label.png -l 102x152
    tdlabel -f receipt.pdf -t c -l 62 -m stucki -n 3
    tdlabel --list-models

Values given on the command line override those of the JSON config file
(see tdlabel.load_config), which override the built-in defaults.

Exit status: 0 on success, 1 when the job fails, 2 on usage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Final, List, Optional

from tdlabel import __version__, load_config, set_console_level
from tdlabel.config import PrintSettings
from tdlabel.device.catalog import iter_models
from tdlabel.exceptions import LabelPrinterError
from tdlabel.job import PrintJob
from tdlabel.model.enums import DitherMode, LabelType, MarginColor

logger: Final = logging.getLogger(__name__)

__all__ = ["build_parser", "settings_from_args", "main"]

# CLI dest -> PrintSettings field
_SETTINGS_FIELDS: Final[Dict[str, str]] = {
    "label": "label_size",
    "type": "label_type",
    "dither": "dither",
    "margin_color": "margin_color",
    "rotate": "rotate",
    "number": "copies",
    "product": "printer_name",
    "serial": "serial",
    "debug": "debug",
    "debug_dir": "debug_dir",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tdlabel",
        description="Print an image on a Brother TD-4000 series USB label printer.",
    )
    parser.add_argument("-f", "--file", help="image, PDF or SVG file to print")
    parser.add_argument(
        "-r", "--rotate", action="store_true", default=None, help="rotate the image 90 degrees"
    )
    parser.add_argument(
        "-l", "--label", metavar="WxH", help="label size in mm (default 102x200; width only for tape)"
    )
    parser.add_argument(
        "-t",
        "--type",
        choices=[t.value for t in LabelType],
        help="label type: d = die-cut labels, c = continuous tape",
    )
    parser.add_argument("-p", "--product", metavar="NAME", help="printer model, e.g. TD-4410D")
    parser.add_argument("-s", "--serial", metavar="SERIAL", help="USB serial number of the printer")
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=None,
        help="write image.png, raster.dat and commands.prn",
    )
    parser.add_argument("--debug-dir", metavar="DIR", help="directory for the debug files")
    parser.add_argument(
        "-m",
        "--dither",
        nargs="?",
        const=DitherMode.FLOYD_STEINBERG.value,
        choices=[m.value for m in DitherMode if m.is_error_diffusion],
        help="dither the image (default algorithm: floyd)",
    )
    parser.add_argument(
        "-b",
        "--black-margin",
        dest="margin_color",
        action="store_const",
        const=MarginColor.BLACK,
        help="fill the margins black",
    )
    parser.add_argument("-n", "--number", type=int, metavar="COPIES", help="number of copies")
    parser.add_argument("--config", metavar="PATH", help="JSON config file")
    parser.add_argument(
        "--list-models", action="store_true", help="list supported printers and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_from_args(
    args: argparse.Namespace, config: Optional[Dict[str, Any]] = None
) -> PrintSettings:
    """
    Merge parsed arguments over ``config``.

    Raises:
        ConfigError, InvalidLabelSizeError: If the merged values are invalid.
    """
    values: Dict[str, Any] = dict(config or {})
    for dest, field_name in _SETTINGS_FIELDS.items():
        value = getattr(args, dest, None)
        if value is not None:
            values[field_name] = value
    return PrintSettings.from_mapping(values)


def _list_models() -> List[str]:
    return [
        f"{model.name:<12} 0x{model.product_id:04X}  {model.dpi} DPI  "
        f"{model.raster_width_pixels} dots"
        for model in iter_models()
    ]


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_console_level(logging.DEBUG)

    if args.list_models:
        print("\n".join(_list_models()))
        return 0

    if not args.file:
        parser.error("the following arguments are required: -f/--file")

    try:
        settings = settings_from_args(args, load_config(args.config))
        result = PrintJob(settings).run(args.file)
    except LabelPrinterError as e:
        logger.debug("Print job failed", exc_info=True)
        print(e.message, file=sys.stderr)
        return 1

    print(result)
    return 0
