"""Main entry point - verifies the passphrase, then serves the signer API."""

import asyncio
import getpass
import logging
import os
import signal
import sys

import uvicorn

from walletsigner.api.app import create_app
from walletsigner.authorization import DualSignatureAuthorizer
from walletsigner.config import Settings, load_settings
from walletsigner.errors import DerivationError, PassphraseMismatchError
from walletsigner.hdwallet import SeedKeyStore
from walletsigner.ledger import AddressIndexRegistry, Database
from walletsigner.service import SignerService

logger = logging.getLogger(__name__)

MIN_PASSPHRASE_LENGTH = 8


def obtain_passphrase(settings: Settings) -> str:
    """Passphrase from the environment, or prompted on the terminal."""
    passphrase = settings.signer_passphrase
    if passphrase:
        logger.info("Using passphrase from environment")
    else:
        passphrase = getpass.getpass("Enter signer passphrase: ")

    if len(passphrase) < MIN_PASSPHRASE_LENGTH:
        raise ValueError(f"Passphrase must be at least {MIN_PASSPHRASE_LENGTH} characters")
    return passphrase


class Application:
    """Signer process: database, components, integrity check, API server."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.db: Database | None = None
        self.server: uvicorn.Server | None = None

    async def start(self, passphrase: str):
        """Build all components and serve until shutdown."""
        logger.info("Starting wallet signer...")
        logger.info(f"Environment: {self.settings.environment}")

        self.db = Database.from_settings(self.settings)
        await self.db.init()
        logger.info("Database initialized")

        try:
            service = self.build_service(passphrase)
            await service.startup()
        except (DerivationError, PassphraseMismatchError) as e:
            logger.error(f"Startup check failed: {e}")
            await self._cleanup()
            raise

        app = create_app(service, self.settings)
        config = uvicorn.Config(
            app,
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level="debug" if self.settings.debug else "info",
        )
        self.server = uvicorn.Server(config)
        logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")
        try:
            await self.server.serve()
        finally:
            await self._cleanup()

    def build_service(self, passphrase: str) -> SignerService:
        keystore = SeedKeyStore(self.settings.mnemonic, passphrase)
        registry = AddressIndexRegistry(self.db)
        authorizer = DualSignatureAuthorizer(
            self.settings.risk_public_key,
            self.settings.wallet_public_key,
            tolerance_ms=self.settings.signature_tolerance_ms,
        )
        return SignerService(keystore, registry, authorizer, device=self.settings.signer_device)

    async def _cleanup(self):
        """Cleanup resources."""
        logger.info("Cleaning up...")
        if self.db is not None:
            await self.db.close()
            self.db = None
        logger.info("Cleanup complete")

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        if self.server is not None:
            self.server.should_exit = True


def main():
    """Main entry point."""
    settings = load_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not settings.has_mnemonic:
        logger.error("MNEMONIC is not configured")
        sys.exit(1)
    if not settings.has_counterparty_keys:
        logger.warning("RISK_PUBLIC_KEY / WALLET_PUBLIC_KEY not set - every sign request will be rejected")

    try:
        passphrase = obtain_passphrase(settings)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    # Keep the secret out of the process environment once read
    os.environ.pop("SIGNER_PASSPHRASE", None)

    app = Application(settings)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.start(passphrase))
    except (DerivationError, PassphraseMismatchError):
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
