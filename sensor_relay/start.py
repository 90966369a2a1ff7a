#!/usr/bin/env python3
"""
Startup script for the sensor relay
"""

import argparse
import logging
import sys

import uvicorn

from . import config


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Run the sensor relay (WebSocket + status API).")
    ap.add_argument("--host", default=config.HOST, help="Bind address (env RELAY_HOST)")
    ap.add_argument("--port", type=int, default=config.PORT, help="Bind port (env RELAY_PORT)")
    ap.add_argument("--reload", action="store_true", default=config.DEBUG,
                    help="Auto-reload on code changes (env RELAY_DEBUG=true)")
    ap.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level (env RELAY_LOG_LEVEL)")
    return ap.parse_args(argv)


def main(argv=None):
    """Main startup function"""
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("sensor_relay")

    logger.info(f"📍 Relay will run on {args.host}:{args.port}")
    logger.info(f"🔄 Auto-reload: {'enabled' if args.reload else 'disabled'}")
    logger.info(f"🌐 WebSocket endpoint: ws://{args.host}:{args.port}/ (also /ws)")
    logger.info(f"📊 Status API: http://{args.host}:{args.port}/clients")

    try:
        uvicorn.run(
            "sensor_relay.server:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=args.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("🛑 Relay stopped by user")
    except Exception as e:
        logger.error(f"❌ Error starting relay: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
