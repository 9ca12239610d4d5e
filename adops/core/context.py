import contextvars

_account_id: contextvars.ContextVar[str] = contextvars.ContextVar("account_id", default="-")
_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")
_user_id: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="-")


def set_account_id(account_id) -> None:
    _account_id.set(str(account_id))


def get_account_id() -> str:
    return _account_id.get()


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def set_user_id(user_id) -> None:
    _user_id.set(str(user_id))


def get_user_id() -> str:
    return _user_id.get()


def clear_context() -> None:
    _account_id.set("-")
    _request_id.set("-")
    _user_id.set("-")
