"""Context variables for structured logging."""

import secrets
from contextvars import ContextVar

_operation_id: ContextVar[str] = ContextVar("operation_id", default="")
_account_name: ContextVar[str] = ContextVar("account_name", default="")
_component: ContextVar[str] = ContextVar("component", default="")


def set_log_context(
    operation_id: str | None = None,
    account_name: str | None = None,
    component: str | None = None,
) -> None:
    if operation_id is not None:
        _operation_id.set(operation_id)
    if account_name is not None:
        _account_name.set(account_name)
    if component is not None:
        _component.set(component)


def get_log_context() -> dict[str, str]:
    return {
        "operation_id": _operation_id.get(),
        "account_name": _account_name.get(),
        "component": _component.get(),
    }


def clear_log_context() -> None:
    _operation_id.set("")
    _account_name.set("")
    _component.set("")


def generate_operation_id() -> str:
    """Short random id correlating the log lines of one authenticated call."""
    return f"op-{secrets.token_hex(4)}"
