
class SelectionValidationError(ValueError):
    """Raised when user input is missing or invalid (required selection, amount limits)."""
    pass


class CatalogUpstreamError(RuntimeError):
    """Raised when the admin API fails (timeouts, network errors, 5xx)."""
    pass


class CatalogContractError(RuntimeError):
    """Raised when the admin API answers with an unexpected shape or a false status."""
    pass


class FormSessionNotFound(KeyError):
    """Raised when a form id is not known to the session store."""
    pass
