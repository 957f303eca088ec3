"""Temporal client factory.

Connects to a local Temporal server or to Temporal Cloud using settings
from the environment.
"""

from pathlib import Path
from typing import Optional, Union

from temporalio.client import Client
from temporalio.service import TLSConfig

from core.config import Settings, get_settings


async def get_temporal_client(settings: Optional[Settings] = None) -> Client:
    """Create and return a connected Temporal client.

    Reads configuration from settings (environment / .env):
    - TEMPORAL_ENDPOINT: Frontend host:port (e.g. "localhost:7233")
    - TEMPORAL_NAMESPACE: Namespace (default "default")
    - TEMPORAL_API_KEY: API key for Temporal Cloud; enables TLS
    - TEMPORAL_CERT_PATH: PEM file holding client certificate and key for mTLS (optional)

    Raises:
        ValueError: If TEMPORAL_ENDPOINT is not set
    """
    settings = settings or get_settings()

    if not settings.temporal_endpoint:
        raise ValueError(
            "TEMPORAL_ENDPOINT environment variable not set. "
            "Set to your Temporal endpoint (e.g., 'localhost:7233')"
        )

    tls: Union[bool, TLSConfig] = False
    if settings.temporal_cert_path:
        pem = Path(settings.temporal_cert_path).read_bytes()
        tls = TLSConfig(client_cert=pem, client_private_key=pem)
    elif settings.temporal_api_key:
        # Temporal Cloud: system certificates
        tls = True

    return await Client.connect(
        settings.temporal_endpoint,
        namespace=settings.temporal_namespace,
        tls=tls,
        api_key=settings.temporal_api_key,
    )
