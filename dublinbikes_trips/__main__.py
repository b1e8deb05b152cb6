import argparse
import json
import logging
import os.path
import sys

from dublinbikes_trips import DublinBikesError, DublinBikesTrips
from dublinbikes_trips.models import parse_timestamp

log = logging.getLogger(__name__)

config_file = "dublinbikes_trips.config"
DTS = "%d/%m/%Y %H:%M:%S"
FIELDS = (
    ("account_id", "ACCOUNT_ID", "Account ID"),
    ("account_email", "ACCOUNT_EMAIL", "Account Email"),
    ("account_password", "ACCOUNT_PASSWORD", "Account Password"),
)


def load_config():
    """Read account details from ~/.dublinbikes_trips.config or ./dublinbikes_trips.config"""

    for path in (os.path.expanduser("~/.{}".format(config_file)), config_file):
        if os.path.exists(path):
            log.debug("loading config from {}".format(path))
            try:
                with open(path, "r", encoding="utf-8") as f:
                    config = json.load(f)
            except (OSError, ValueError) as err:
                raise SystemExit("Error reading config {}: {}".format(path, err))
            if not isinstance(config, dict):
                raise SystemExit("Error reading config {}: expected a JSON object".format(path))
            return config
    return {}


def build_parser():
    parser = argparse.ArgumentParser(description="dublinbikes personal trip history download.")
    for name, env, text in FIELDS:
        parser.add_argument("--{}".format(name), type=str, default="", help="{} (env {})".format(text, env))
    parser.add_argument("--timeout", type=int, default=60, help="HTTP timeout in seconds")
    parser.add_argument("--json", action="store_true", help="print trips as JSON")
    parser.add_argument("--local", action="store_true", help="print times in Dublin local time")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-d", "--debug", action="store_true")
    return parser


def resolve_inputs(args, environ=None):
    """Fill each account field from flag, then environment, then config file."""

    if environ is None:
        environ = os.environ
    config = None
    values = {}
    for name, env, _ in FIELDS:
        value = getattr(args, name) or environ.get(env, "")
        if not value:
            if config is None:
                config = load_config()
            value = config.get(name, "")
        values[name] = value
    return values


def local_time(st):
    """Format a trip timestamp in Dublin time, or return it unchanged if it does not parse."""

    try:
        return parse_timestamp(st).strftime(DTS)
    except ValueError as e:
        log.warning("cannot convert timestamp {!r} to local time: {}".format(st, e))
        return st


def format_trips(trips, local=False):
    lines = []
    for i, trip in enumerate(trips):
        if local:
            start = local_time(trip.start_date_time)
            end = local_time(trip.end_date_time)
        else:
            start = trip.start_date_time
            end = trip.end_date_time
        lines.append("Trip {}:".format(i + 1))
        lines.append("\tStart: {}, Station: {}".format(start, trip.start_station))
        lines.append("\tEnd: {}, Station: {}".format(end, trip.end_station))
        lines.append("\tDuration: {} minutes".format(trip.duration))
    return "\n".join(lines)


def main(argv=None, session=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG)
    elif args.verbose:
        logging.basicConfig(level=logging.INFO)

    values = resolve_inputs(args)
    missing = [name for name, value in values.items() if not value]
    if missing:
        parser.error("missing {}".format(", ".join("--{}".format(m) for m in missing)))

    try:
        client = DublinBikesTrips(
            values["account_id"],
            values["account_email"],
            values["account_password"],
            session=session,
            http_timeout=args.timeout,
        )
    except DublinBikesError as err:
        print("Error initializing client: {}".format(err))
        return 1

    with client:
        try:
            trips = client.get_trips()
        except DublinBikesError as err:
            print("Error getting trips: {}".format(err))
            return 1

    if args.json:
        print(json.dumps([t.to_dict() for t in trips], indent=2, sort_keys=True))
    elif trips:
        print(format_trips(trips, local=args.local))
    return 0


if __name__ == "__main__":
    sys.exit(main())
