"""Application bootstrap/wiring."""

import logging
from dataclasses import dataclass

from rwa_swap_relay.application.services import ProviderService, SwapSessionService
from rwa_swap_relay.config import Settings
from rwa_swap_relay.domain.ports import NodeConnector
from rwa_swap_relay.infrastructure.clearnode import (
    AuthHandshakeController,
    ClearNodeClient,
    RequestCorrelator,
)
from rwa_swap_relay.infrastructure.repositories import (
    InMemoryExecutionPlanRepository,
    InMemoryProviderRepository,
)
from rwa_swap_relay.infrastructure.signing import EthereumSigner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SwapRelayRuntime:
    """Explicitly constructed service graph shared by the HTTP routes."""

    settings: Settings
    node_client: ClearNodeClient
    swap_service: SwapSessionService
    provider_service: ProviderService

    async def start(self) -> None:
        """Connect and authenticate against the node."""

        session = await self.node_client.start()
        logger.info(
            "Relay ready: %s authenticated at %s.",
            session.main_address,
            self.settings.clearnode_ws_url,
        )

    async def close(self) -> None:
        await self.node_client.close()


def _build_main_signer(settings: Settings) -> EthereumSigner:
    if settings.main_private_key is None:
        raise ValueError("RWA_SWAP_MAIN_PRIVATE_KEY is required.")
    private_key = settings.main_private_key.get_secret_value().strip()
    if not private_key:
        raise ValueError("RWA_SWAP_MAIN_PRIVATE_KEY is required.")
    try:
        return EthereumSigner.from_private_key(private_key)
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"RWA_SWAP_MAIN_PRIVATE_KEY is not a valid private key: {exc}") from exc


def build_node_client(
    settings: Settings,
    connector: NodeConnector | None = None,
) -> ClearNodeClient:
    """Compose correlator, auth controller, and client for one node endpoint."""

    correlator = RequestCorrelator(
        url=settings.clearnode_ws_url,
        connector=connector,
        connect_timeout_seconds=settings.connect_timeout_seconds,
        request_timeout_seconds=settings.request_timeout_seconds,
        background_methods=settings.background_methods,
    )
    auth = AuthHandshakeController(
        correlator=correlator,
        main_signer=_build_main_signer(settings),
        application=settings.application_name,
        scope=settings.auth_scope,
        allowance_asset=settings.allowance_asset,
        allowance_amount=settings.allowance_amount,
        session_expiry_seconds=settings.session_expiry_seconds,
    )
    return ClearNodeClient(correlator=correlator, auth=auth)


def build_runtime(
    settings: Settings,
    connector: NodeConnector | None = None,
) -> SwapRelayRuntime:
    """Compose service graph."""

    node_client = build_node_client(settings, connector=connector)
    provider_repository = InMemoryProviderRepository()
    swap_service = SwapSessionService(
        repository=InMemoryExecutionPlanRepository(),
        gateway=node_client,
        provider_repository=provider_repository,
        payment_asset=settings.payment_asset,
        app_protocol=settings.app_protocol,
    )
    logger.info(
        "Built relay runtime for %s (node %s).",
        node_client.auth.main_address,
        settings.clearnode_ws_url,
    )
    return SwapRelayRuntime(
        settings=settings,
        node_client=node_client,
        swap_service=swap_service,
        provider_service=ProviderService(provider_repository),
    )


__all__ = ["SwapRelayRuntime", "build_node_client", "build_runtime"]
