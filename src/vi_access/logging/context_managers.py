"""Context managers for structured logging."""

from vi_access.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(operation_id=generate_operation_id(), component="cli"):
            # All logs in this block carry operation_id and component
            await authenticator.get_access_token()
    """

    def __init__(
        self,
        operation_id: str | None = None,
        account_name: str | None = None,
        component: str | None = None,
    ):
        self.new_context = {
            "operation_id": operation_id,
            "account_name": account_name,
            "component": component,
        }
        self.old_context: dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_log_context(
            operation_id=self.old_context.get("operation_id", ""),
            account_name=self.old_context.get("account_name", ""),
            component=self.old_context.get("component", ""),
        )
        return False
