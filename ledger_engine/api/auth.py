"""
Bearer token check.

When ACCOUNTING_SERVICE_TOKEN is set, every router except health
depends on require_token. When it is unset the check is skipped.
"""

import hmac

from fastapi import Request

from ledger_engine.errors import Unauthorized


def require_token(request: Request) -> None:
    expected = request.app.state.settings.ACCOUNTING_SERVICE_TOKEN
    if not expected:
        return

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(
        token.strip().encode(), expected.encode()
    ):
        raise Unauthorized()
