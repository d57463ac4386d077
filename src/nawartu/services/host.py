"""
Host Upgrade - Turn a guest account into a host account.

The role change happens server-side in ``request_host_upgrade``; the client
only interprets its boolean verdict.
"""

import logging
from typing import Optional

from nawartu.models import HostUpgradeResult
from nawartu.services.backend import BackendClient, BackendError
from nawartu.utils.i18n import t

logger = logging.getLogger('Nawartu')


def request_host_upgrade(backend: BackendClient, lang: str = "en") -> HostUpgradeResult:
    """
    Ask the backend to upgrade the signed-in user to host.

    Only a literal ``true`` from the procedure counts as success.

    Returns:
        HostUpgradeResult with a localized message; never raises
    """
    try:
        data = backend.rpc("request_host_upgrade")
    except BackendError as e:
        logger.error(f"Host upgrade error: {e}")
        return HostUpgradeResult(success=False, message=e.message or t("host.failed", lang))

    if isinstance(data, list):
        data = data[0] if len(data) == 1 else None

    if data is True:
        logger.info("User upgraded to host")
        return HostUpgradeResult(success=True, message=t("host.upgraded", lang))
    return HostUpgradeResult(success=False, message=t("host.not_upgraded", lang))


def is_host(role: Optional[str]) -> bool:
    return role in ("host", "admin")
