"""
Dashboard aggregates.

The three dashboard reads are computed server-side by edge functions and
passed through untouched. They are independent: one failing does not
prevent the others from being shown.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from domain.errors import AuthenticationError, PosError
from repositories.functions_repository import invoke_function

logger = logging.getLogger(__name__)

DASHBOARD_FUNCTIONS = {
    "stats": "dashboard-stats",
    "recent_transactions": "dashboard-recent-transactions",
    "top_products": "dashboard-top-products",
}


def get_section(token: str, section: str) -> Any:
    name = DASHBOARD_FUNCTIONS.get(section)
    if name is None:
        raise KeyError(section)
    return invoke_function(name, token=token)


def get_dashboard(token: str) -> Dict[str, Any]:
    """
    Fetch every dashboard section.

    A failed section is reported under `errors` with its message and its
    value set to None. An expired session still fails the whole call.
    """

    result: Dict[str, Any] = {"errors": {}}
    for section in DASHBOARD_FUNCTIONS:
        try:
            result[section] = get_section(token, section)
        except AuthenticationError:
            raise
        except PosError as exc:
            logger.warning("Dashboard section failed", extra={"section": section, "error": exc.message})
            result[section] = None
            result["errors"][section] = exc.message
    return result


__all__ = ["DASHBOARD_FUNCTIONS", "get_section", "get_dashboard"]
