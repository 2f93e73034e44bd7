#!/usr/bin/env python
#
# Copyright (c) 2024-2025, Ryan Galloway (ryan@rsgalloway.com)
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#  - Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
#  - Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
#  - Neither the name of the software nor the names of its contributors
#    may be used to endorse or promote products derived from this software
#    without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.
#

__doc__ = """
Command line interface for cratemirror: mirrors crate metadata from a
registry, using a local package index as the list of crates to fetch.

Usage:

    $ cratemirror -i INDEX -o OUTPUT [OPTIONS]
"""

import argparse
import os
import sys
from typing import List, Optional, Sequence

from cratemirror import config
from cratemirror.logger import log, setup_logging, verbosity_level
from cratemirror.process import parse_directory
from cratemirror.registry import RegistryClient
from cratemirror.settings import SettingsError, load_config_file, merge_settings


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    from cratemirror import __version__

    parser = argparse.ArgumentParser(
        prog="cratemirror",
        description=__doc__,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "-i",
        "--input",
        metavar="DIR",
        help="package index directory to parse",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="DIR",
        help="directory to store metadata",
    )
    parser.add_argument(
        "-l",
        "--logfile",
        metavar="FILE",
        help="path to log file (default is stderr)",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        default=config.CONFIG_FILE,
        help="path to optional configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "-n",
        "--count",
        metavar="COUNT",
        type=int,
        help=f"number of fetcher threads (default: {config.WORKERS_DEFAULT})",
    )
    parser.add_argument(
        "-r",
        "--registry",
        metavar="URL",
        help=f"registry url (default: {config.REGISTRY_URL})",
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=float,
        help=f"request timeout (default: {config.REQUEST_TIMEOUT:g})",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="show a progress bar",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="more output, repeat for more (-vvv)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="less output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cratemirror {__version__}",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = build_parser()
    return parser.parse_args(list(argv) if argv is not None else None)


def run(args: argparse.Namespace) -> int:
    """Run a mirror pass based on parsed arguments."""

    try:
        settings = merge_settings(
            input=args.input,
            output=args.output,
            logfile=args.logfile,
            count=args.count,
            level=verbosity_level(args.verbose, args.quiet),
            registry=args.registry,
            timeout=args.timeout,
            file_config=load_config_file(args.config),
        )
    except SettingsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        setup_logging(settings.level, settings.logfile)
    except OSError as e:
        print(f"Error: cannot create log file: {e}", file=sys.stderr)
        return 1

    # check directories
    for path in (settings.input, settings.output):
        if not os.path.isdir(path) or not os.access(path, os.R_OK | os.X_OK):
            log.error("Can't access to directory %s", path)
            return 1

    client = RegistryClient(
        settings.registry, timeout=settings.timeout, pool_size=settings.count
    )

    try:
        parse_directory(
            settings.input,
            settings.output,
            settings.count,
            client=client,
            progress=args.progress,
        )
    except KeyboardInterrupt:
        log.error("canceled")
        return 2
    except OSError as e:
        log.error("Error while processing directories: %s", e)
        return 1

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for cratemirror."""

    args = parse_args(argv)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
