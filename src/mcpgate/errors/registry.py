"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, GatewayError


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code."""
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def register(self, template: ErrorTemplate) -> None:
        """Register or replace a template."""
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: GatewayError | None = None,
    ) -> GatewayError:
        """Create error instance from template + context.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            GatewayError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        if message is None:
            message = f"Error {code}"

        return GatewayError(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            retryable=template.default_retryable,
            http_status=template.default_http_status,
            field_name=context.get("field_name"),
            username=context.get("username"),
            cause=cause,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Missing context variables leave the template as-is.
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except KeyError:
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # AUTHENTICATION Errors
        self._templates["AUTH_REQUIRED"] = ErrorTemplate(
            code="AUTH_REQUIRED",
            category=ErrorCategory.AUTHENTICATION,
            message_template="Unauthorized: API key or session required",
            detail_template="No valid API key or session was supplied with the request",
            suggestion_template="Send 'Authorization: Bearer <key>' or a valid 'session' parameter",
            default_http_status=401,
        )

        # AUTHORIZATION Errors
        self._templates["ADMIN_REQUIRED"] = ErrorTemplate(
            code="ADMIN_REQUIRED",
            category=ErrorCategory.AUTHORIZATION,
            message_template="User '{username}' is not an administrator",
            detail_template="The session is valid but the login is not in the admin list",
            suggestion_template="Ask an existing administrator to grant admin access",
            default_http_status=403,
        )

        # VALIDATION Errors
        self._templates["FIELD_REQUIRED"] = ErrorTemplate(
            code="FIELD_REQUIRED",
            category=ErrorCategory.VALIDATION,
            message_template="Field '{field_name}' is required",
            default_http_status=400,
        )

        self._templates["FIELD_INVALID"] = ErrorTemplate(
            code="FIELD_INVALID",
            category=ErrorCategory.VALIDATION,
            message_template="Field '{field_name}' is invalid",
            detail_template="{reason}",
            default_http_status=400,
        )

        self._templates["ADMIN_SELF_REMOVAL"] = ErrorTemplate(
            code="ADMIN_SELF_REMOVAL",
            category=ErrorCategory.VALIDATION,
            message_template="You cannot remove yourself as an admin",
            suggestion_template="Ask another administrator to remove you",
            default_http_status=400,
        )

        # NOT_FOUND / CONFLICT Errors
        self._templates["KEY_NOT_DEACTIVATED"] = ErrorTemplate(
            code="KEY_NOT_DEACTIVATED",
            category=ErrorCategory.NOT_FOUND,
            message_template="Failed to deactivate API key '{key_id}'",
            detail_template="The key does not exist or was issued by another user",
            default_http_status=400,
        )

        self._templates["ADMIN_LAST_MEMBER"] = ErrorTemplate(
            code="ADMIN_LAST_MEMBER",
            category=ErrorCategory.CONFLICT,
            message_template="Cannot remove '{username}': the last administrator cannot be removed",
            suggestion_template="Add another administrator first",
            default_http_status=409,
        )

        self._templates["ADMIN_UPDATE_FAILED"] = ErrorTemplate(
            code="ADMIN_UPDATE_FAILED",
            category=ErrorCategory.STORE,
            message_template="Failed to update admin list",
            default_retryable=True,
            default_http_status=500,
        )

        # STORE Errors
        self._templates["STORE_UNAVAILABLE"] = ErrorTemplate(
            code="STORE_UNAVAILABLE",
            category=ErrorCategory.STORE,
            message_template="Key-value store is unavailable",
            detail_template="{detail}",
            suggestion_template="Check that the backing store is running and reachable",
            default_retryable=True,
            default_http_status=503,
        )

        self._templates["STORE_WRITE_FAILED"] = ErrorTemplate(
            code="STORE_WRITE_FAILED",
            category=ErrorCategory.STORE,
            message_template="Failed to write '{key}' to the key-value store",
            default_retryable=True,
            default_http_status=500,
        )

        # OAUTH Errors
        self._templates["OAUTH_FAILED"] = ErrorTemplate(
            code="OAUTH_FAILED",
            category=ErrorCategory.AUTHENTICATION,
            message_template="Identity provider login failed",
            detail_template="{reason}",
            default_retryable=True,
            default_http_status=502,
        )

        self._templates["OAUTH_NOT_CONFIGURED"] = ErrorTemplate(
            code="OAUTH_NOT_CONFIGURED",
            category=ErrorCategory.CONFIG,
            message_template="Identity provider is not configured",
            suggestion_template="Set auth.oauth.client_id and auth.oauth.client_secret",
            default_http_status=500,
        )

        # CONFIG / SYSTEM Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Configuration is invalid",
            detail_template="{detail}",
            suggestion_template="Check the configuration file and environment variables",
            default_http_status=500,
        )

        self._templates["TOOL_ALREADY_REGISTERED"] = ErrorTemplate(
            code="TOOL_ALREADY_REGISTERED",
            category=ErrorCategory.CONFLICT,
            message_template="Tool '{tool_name}' is already registered",
            default_http_status=500,
        )

        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.SYSTEM,
            message_template="Internal error",
            detail_template="{detail}",
            default_http_status=500,
        )
