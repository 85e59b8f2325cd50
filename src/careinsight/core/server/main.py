"""CareInsight server entry point: ``python -m careinsight.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from careinsight.core.config.settings import get_settings
from careinsight.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the CareInsight MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.careinsight_log_level.upper(), logging.INFO)
    )

    logger = logging.getLogger(__name__)
    if not settings.careinsight_allow_insecure_bind and not _is_loopback_host(
        settings.careinsight_host
    ):
        raise RuntimeError(
            "Refusing to bind CareInsight to a non-loopback host without an auth layer. "
            "Set CAREINSIGHT_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting CareInsight server on %s:%d",
        settings.careinsight_host,
        settings.careinsight_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.careinsight_host,
        port=settings.careinsight_port,
    )


if __name__ == "__main__":
    run()
