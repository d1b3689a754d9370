"""Request helpers shared by the admin and OAuth routers.

Collaborators live on ``request.app.state`` (see ``create_app``).
"""

from dataclasses import dataclass

from fastapi import Request

from mcpgate.auth import AuthResolver, Principal, SessionRecord
from mcpgate.errors import create_error


@dataclass
class AdminContext:
    """The admin acting on a request."""

    principal: Principal
    session: SessionRecord
    session_id: str

    @property
    def login(self) -> str:
        return self.principal.login or ""


async def require_admin(request: Request) -> AdminContext:
    """Resolve the ``session`` query parameter as a live admin session.

    Raises:
        GatewayError: AUTH_REQUIRED or ADMIN_REQUIRED
    """
    resolver: AuthResolver = request.app.state.resolver
    session_id = request.query_params.get("session") or ""
    principal, session = await resolver.resolve_admin(session_id)
    return AdminContext(principal=principal, session=session, session_id=session_id)


async def form_value(request: Request, name: str) -> str | None:
    """Read a field from the form body, falling back to the query string."""
    if request.method == "POST":
        form = await request.form()
        value = form.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    value = request.query_params.get(name)
    if value and value.strip():
        return value.strip()
    return None


async def required_field(request: Request, name: str) -> str:
    """Like ``form_value`` but raise FIELD_REQUIRED when absent."""
    value = await form_value(request, name)
    if value is None:
        raise create_error("FIELD_REQUIRED", field_name=name)
    return value


def callback_url(request: Request) -> str:
    return str(request.base_url).rstrip("/") + "/callback"
