#  cloudflareddns - Keep Cloudflare DNS records in sync with your public IP
#  Copyright (C) 2023 The cloudflareddns contributors
#
#  This program is free software: you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation, either version 3 of the License, or
#  (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with this program.  If not, see <https://www.gnu.org/licenses/>.

import argparse
import logging
import logging.handlers
import signal
import sys

from . import configuration, manager
from .exceptions import ConfigError, SetupError
from .util import sdnotify


def parse_args(argv):
    """Parse command line arguments

    :param argv: Either ``None`` or a list of arguments
    :returns: a :class:`argparse.Namespace` containing the parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Keep Cloudflare DNS records in sync with the public IP "
                    "address",
        epilog="SIGUSR1 will cause a running instance to immediately check and"
               " update the current IP address(es)",
    )
    parser.add_argument("-1", "--single-shot", action="store_true",
                        help="Check and update all records a single time")
    parser.add_argument("-c", "--configfile",
                        default="/etc/cloudflareddns.conf",
                        help="Path to the config file")
    parser.add_argument("-d", "--debug-logs", action="store_true",
                        help="Increase verbosity of logging significantly")
    parser.add_argument("-s", "--stderr", action="store_true",
                        help="Log to stderr instead of syslog or file")
    return parser.parse_args(argv)


def setup_logging(logfile: str, debug: bool) -> logging.Logger:
    """Attach a handler to the top-level logger

    :param logfile: ``'syslog'``, ``'stderr'``, or a path to a log file
    :param debug: Whether to log at ``DEBUG`` rather than ``INFO``
    :returns: The top-level ``cloudflareddns`` logger
    """
    if logfile == 'syslog':
        log_handler: logging.Handler = logging.handlers.SysLogHandler()
        log_handler.setFormatter(
            logging.Formatter('cloudflareddns: %(name)s: %(message)s')
        )
    else:
        if logfile == 'stderr':
            log_handler = logging.StreamHandler()
        else:
            log_handler = logging.FileHandler(logfile)
        log_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s'
        ))
    log = logging.getLogger('cloudflareddns')
    log.addHandler(log_handler)

    if debug:
        log.setLevel(logging.DEBUG)
    else:
        log.setLevel(logging.INFO)
    return log


def main(argv=None):
    """Main entry point when run as a standalone program

    :param argv: List of arguments. If ``None``, read :data:`sys.argv`.
    """
    args = parse_args(argv)
    try:
        conf = configuration.read_config_from_path(args.configfile)
    except ConfigError as e:
        print("Config error:", e, file=sys.stderr)
        sys.exit(2)

    logfile = 'stderr' if args.stderr else conf.settings.log
    log = setup_logging(logfile, args.debug_logs)

    try:
        ddns_manager = manager.DDNSManager(conf)
    except ConfigError as e:
        print("Config error:", e, file=sys.stderr)
        sys.exit(2)
    except SetupError:
        log.critical("cloudflareddns failed to start.")
        sys.exit(1)

    if args.single_shot:
        ddns_manager.check_once()
        return

    ddns_manager.start()

    # Notify systemd, if applicable
    sdnotify.status(f"Keeping {len(ddns_manager.workers)} records updated")
    sdnotify.ready()

    # Do an immediate update on SIGUSR1
    def handle_sigusr1(sig, _):
        log.info("Received signal: %s", signal.Signals(sig).name)
        ddns_manager.poll_now()
    signal.signal(signal.SIGUSR1, handle_sigusr1)

    # Stop on SIGINT (^C) or SIGTERM
    def handle_signals(sig, _):
        log.info("Received signal: %s", signal.Signals(sig).name)
        sdnotify.stopping()
        ddns_manager.stop()
    signal.signal(signal.SIGINT, handle_signals)
    signal.signal(signal.SIGTERM, handle_signals)

    ddns_manager.join()


if __name__ == '__main__':
    main()
