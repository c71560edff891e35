import argparse
import os
import sys

from staticserver.config import Config
from staticserver.errors import BindFailure
from staticserver.log import setup_logger
from staticserver.server import ThreadedHTTPServer as Server


def _port(value):
    port = int(value)
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def _workers(value):
    workers = int(value)
    if workers < 1:
        raise argparse.ArgumentTypeError("need at least one worker")
    return workers


def build_parser():
    parser = argparse.ArgumentParser(description="A static file http server")
    parser.add_argument("root", metavar="DIRECTORY", help="directory to serve, should contain an index.html")
    parser.add_argument("--host", "-H", type=str, default="0.0.0.0", help="host to listen on")
    parser.add_argument("--port", "-p", type=_port, default=8080, help="port to listen on")
    parser.add_argument("--workers", "-w", type=_workers, default=4, help="number of worker threads")
    parser.add_argument("--debug", "-D", action="store_true", help="enable debug logging")
    return parser


def parse_config(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not os.path.isdir(args.root):
        parser.error(f"not a directory: {args.root}")
    return Config(host=args.host, port=args.port, root=args.root, workers=args.workers, debug=args.debug)


def main(argv=None):
    config = parse_config(argv)
    logger = setup_logger(debug=config.debug)
    logger.info("Starting server on port %d, serving directory '%s' with %d workers.",
                config.port, config.root, config.workers)
    server = Server(config)
    try:
        server.run()
    except BindFailure as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
