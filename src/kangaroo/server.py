"""FastAPI endpoint receiving chat platform interactions."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import uvicorn
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse

from kangaroo.bot import Kangaroo
from kangaroo.config import DiscordConfig, KangarooConfig, configure_logging
from kangaroo.responses import deferred_message, server_error_message, to_message

logger = logging.getLogger("kangaroo.server")

PING = 1
SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


class SignatureVerifier:
    """Checks the Ed25519 signature the platform puts on every interaction.

    The signed message is the timestamp header followed by the raw body.
    Without a public key nothing verifies.
    """

    def __init__(self, public_key_hex: str) -> None:
        self._key: Ed25519PublicKey | None = None
        if public_key_hex:
            self._key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))

    def verify(self, signature_hex: str | None, timestamp: str | None, body: bytes) -> bool:
        if self._key is None or not signature_hex or not timestamp:
            return False
        try:
            self._key.verify(bytes.fromhex(signature_hex), timestamp.encode() + body)
        except (InvalidSignature, ValueError):
            return False
        return True


class InteractionResponder:
    """Edits the deferred reply of an interaction once the command finishes."""

    def __init__(self, config: DiscordConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client or httpx.AsyncClient(timeout=30.0)

    def edit_url(self, interaction_token: str) -> str:
        return (
            f"{self.config.api_base}/webhooks/{self.config.application_id}"
            f"/{interaction_token}/messages/@original"
        )

    async def edit(self, interaction: dict[str, Any], message: dict[str, Any]) -> None:
        headers = {}
        if self.config.bot_token:
            headers["Authorization"] = f"Bot {self.config.bot_token}"
        resp = await self._client.patch(
            self.edit_url(interaction.get("token", "")),
            json=message.get("data", {}),
            headers=headers,
        )
        resp.raise_for_status()

    async def close(self) -> None:
        await self._client.aclose()


def create_app(
    config: KangarooConfig,
    bot: Kangaroo | None = None,
    responder: InteractionResponder | None = None,
) -> FastAPI:
    """Build the app.  Without *bot* one is loaded from *config* at startup."""
    app = FastAPI(title="Kangaroo")
    app.state.bot = bot
    app.state.responder = responder or InteractionResponder(config.discord)
    verifier = SignatureVerifier(config.discord.public_key)

    @app.on_event("startup")
    async def startup() -> None:
        if app.state.bot is None:
            app.state.bot = await Kangaroo.load(config)
        if config.discord.use_security and not config.discord.public_key:
            logger.error("discord.public_key is not set; every interaction will be rejected")
        elif not config.discord.use_security:
            logger.warning("Request signature checks are disabled")
        logger.info(f"Listening for interactions on {config.discord.interact_endpoint}")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        await app.state.responder.close()
        if app.state.bot is not None:
            await app.state.bot.shutdown()

    async def handle(interaction: dict[str, Any]) -> None:
        responder: InteractionResponder = app.state.responder
        try:
            response = await app.state.bot.dispatcher.handle_interaction(interaction)
            await responder.edit(interaction, to_message(response))
        except Exception:
            logger.exception(f"Interaction failed:\n{json.dumps(interaction, indent=2)}")
            try:
                await responder.edit(interaction, server_error_message())
            except httpx.HTTPError as exc:
                logger.error(f"Could not report the failure to the user: {exc}")

    @app.post(config.discord.interact_endpoint)
    async def interactions(request: Request, background: BackgroundTasks) -> Any:
        body = await request.body()
        if config.discord.use_security and not verifier.verify(
            request.headers.get(SIGNATURE_HEADER),
            request.headers.get(TIMESTAMP_HEADER),
            body,
        ):
            host = request.client.host if request.client else "unknown"
            logger.warning(f"Rejected interaction from {host}: bad signature")
            return JSONResponse({"error": "invalid request signature"}, status_code=401)
        try:
            interaction = json.loads(body)
        except ValueError:
            return JSONResponse({"error": "invalid JSON"}, status_code=400)
        if not isinstance(interaction, dict):
            return JSONResponse({"error": "expected a JSON object"}, status_code=400)

        if interaction.get("type") == PING:
            return {"type": PING}
        background.add_task(handle, interaction)
        return deferred_message()

    return app


def run_server(config: KangarooConfig) -> None:
    configure_logging(config.logging)
    app = create_app(config)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level="info")
