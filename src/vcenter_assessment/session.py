"""vCenter session handling."""

from __future__ import annotations

import logging
import ssl
from contextlib import contextmanager
from typing import Iterator

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim

from .config import Credential

logger = logging.getLogger(__name__)


def _connect(host: str, credential: Credential, port: int, disable_ssl: bool) -> vim.ServiceInstance:
    """Establish a connection to vCenter."""
    context = None
    if disable_ssl:
        context = ssl._create_unverified_context()

    logger.info("Connecting to vCenter %s:%s as %s …", host, port, credential.username)
    si = SmartConnect(
        host=host,
        user=credential.username,
        pwd=credential.password,
        port=port,
        sslContext=context,
    )
    logger.info("Connected successfully. API version: %s", si.content.about.apiVersion)
    return si


@contextmanager
def vcenter_session(
    host: str,
    credential: Credential,
    port: int = 443,
    disable_ssl: bool = True,
) -> Iterator[vim.ServiceInstance]:
    """Yield an authenticated service instance and always disconnect afterwards."""
    si = _connect(host, credential, port, disable_ssl)
    try:
        yield si
    finally:
        try:
            Disconnect(si)
            logger.info("Disconnected from %s", host)
        except Exception as e:
            logger.debug("Ignoring disconnect failure for %s: %s", host, e)
