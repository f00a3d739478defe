"""
Main entry point for the Steam OIDC bridge.

Reads configuration, builds the application (key material first) and
serves it with uvicorn, over HTTPS with a throwaway self-signed
certificate when LOCAL_HTTPS is enabled.
"""

import logging
import sys
import tempfile
import traceback

import uvicorn
from pydantic import ValidationError

from steam_oidc.app import create_app
from steam_oidc.config import get_settings
from steam_oidc.core import SteamOIDCError, logger
from steam_oidc.utils.tls import generate_self_signed_cert


def main() -> None:
    """Run the server."""
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("FATAL ERROR: invalid configuration. Check your .env file.")
        for error in e.errors():
            logger.error("  %s: %s", ".".join(str(p) for p in error["loc"]), error["msg"])
        sys.exit(1)

    if settings.log_debug:
        logging.getLogger("steam_oidc").setLevel(logging.DEBUG)
    settings.log_configuration()

    try:
        app = create_app(settings)
    except SteamOIDCError as e:
        logger.error(f"Failed to initialize server: {e}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        sys.exit(1)

    if settings.local_https:
        with tempfile.TemporaryDirectory(prefix="steam-oidc-tls-") as tls_dir:
            try:
                key_path, cert_path = generate_self_signed_cert(tls_dir)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to generate self-signed certificate: {e}")
                logger.error("Falling back to HTTP")
            else:
                logger.info(f"Server is running on https://localhost:{settings.port}")
                uvicorn.run(
                    app,
                    host=settings.host,
                    port=settings.port,
                    ssl_keyfile=str(key_path),
                    ssl_certfile=str(cert_path),
                    log_level="info",
                )
                return

    logger.info(f"Server is running on http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
