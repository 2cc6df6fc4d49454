import argparse
import logging
import signal
import sys

from sitehost import __version__
from sitehost.config import Config, ConfigError, load_site_config, prepare_site
from sitehost.server import ThreadedHTTPServer as Server

logger = logging.getLogger("sitehost")


def main(argv=None):
    parser = argparse.ArgumentParser(description="A static website host")
    parser.add_argument("--host", "-H", type=str, default="0.0.0.0", help="host to listen on")
    parser.add_argument("--port", "-p", type=int, default=8080, help="port to listen on")
    parser.add_argument("--config", "-c", type=str, default="./config.yml",
                        help="site configuration file; a default one is generated if it is missing")
    parser.add_argument("--site", "-s", type=str, default=None, help="override the site directory from the config")
    parser.add_argument("--workers", "-w", type=int, default=4, help="number of worker threads")
    parser.add_argument("--debug", "-D", action="store_true", help="enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )
    logger.info("sitehost v%s", __version__)

    try:
        site_config = load_site_config(args.config)
        if args.site is not None:
            site_config = site_config.with_site(args.site)
        site_config = prepare_site(site_config)
    except ConfigError:
        logger.exception("Failed to initialize server configuration")
        return 1

    config = Config(host=args.host, port=args.port, workers=args.workers)
    server = Server(config, site_config)

    def _shutdown(signum, frame):
        logger.debug("Received %s", signal.Signals(signum).name)
        server.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        server.run()
    except OSError:
        logger.exception("Failed to bind server to %s:%d", args.host, args.port)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
