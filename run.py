# --- File: ./run.py ---
import argparse
import logging

from resticweb import create_app
from resticweb.config import DEFAULT_HOST, DEFAULT_PORT


def parse_address(address, default_port=DEFAULT_PORT):
    """Splits 'host:port', ':port' or 'host' into (host, port)."""
    if not address:
        return DEFAULT_HOST, default_port
    host, sep, port = address.rpartition(':')
    if not sep:
        return address, default_port
    if not port.isdigit():
        raise ValueError(f"invalid port in address '{address}'")
    return host or DEFAULT_HOST, int(port)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Starts a read-only web browser for a restic repository. "
                    f"If no address is given, :{DEFAULT_PORT} will be used."
    )
    parser.add_argument('address', nargs='?', default='', help="Listen address, e.g. ':6723' or '127.0.0.1:8080'.")
    parser.add_argument('--port', type=int, help="Listen port, overrides the port in the address.")
    parser.add_argument('-r', '--repo', help="Repository to browse (default: $RESTIC_REPOSITORY).")
    parser.add_argument('--password-file', help="File to read the repository password from.")
    parser.add_argument('-v', '--verbose', action='store_true', help="Log debug messages, including restic invocations.")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )

    try:
        host, port = parse_address(args.address)
    except ValueError as e:
        print(f"[FATAL] {e}")
        return 2
    if args.port:
        port = args.port

    overrides = {}
    if args.repo:
        overrides['RESTIC_REPOSITORY'] = args.repo
    if args.password_file:
        overrides['RESTIC_PASSWORD_FILE'] = args.password_file

    app = create_app(test_config=overrides)
    print(f"--- {app.config['PROJECT_NAME']} Starting ---")
    if app.config['RESTIC_REPOSITORY']:
        print(f"--- Repository: {app.config['RESTIC_REPOSITORY']} ---")
    for rule in app.url_map.iter_rules():
        if rule.endpoint != 'static':
            print(f"registered handler: {rule.rule}")
    print(f"--- Access at: http://{host}:{port} ---")
    app.run(debug=False, host=host, port=port, use_reloader=False, threaded=True)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
