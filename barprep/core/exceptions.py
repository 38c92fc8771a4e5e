"""Error taxonomy shared by the service and API layers.

Four categories are distinguished in logs even though most of them reach the
client as a generic message:

- ``validation``  – malformed input or a submission the session cannot accept
- ``not_found``   – a referenced user / session / recommendation is absent
- ``provider``    – an LLM backend failed (network, timeout, bad JSON, unknown id)
- ``persistence`` – the database raised (``sqlalchemy.exc.SQLAlchemyError``)
"""


class BarPrepError(Exception):
    """Base class for domain errors raised below the HTTP layer."""

    category = "internal"


# ── validation ────────────────────────────────────────────────────────────────


class SubmissionRejected(BarPrepError):
    """An answer or question request the session cannot accept.

    ``status_code`` is the HTTP status the API layer maps it to: 409 for
    conflicts with stored state (duplicate question number, inactive
    session), 422 for requests outside the session's shape.
    """

    category = "validation"

    def __init__(self, message: str, *, status_code: int = 422) -> None:
        super().__init__(message)
        self.status_code = status_code


# ── not found ─────────────────────────────────────────────────────────────────


class NotFoundError(BarPrepError):
    category = "not_found"

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


# ── provider ──────────────────────────────────────────────────────────────────


class ProviderError(BarPrepError):
    """An LLM provider call failed. Terminal: never retried, never re-routed."""

    category = "provider"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class UnsupportedProviderError(ProviderError):
    category = "provider.unsupported"

    def __init__(self, provider: str) -> None:
        super().__init__(provider, "unsupported LLM provider")


class ProviderUnavailableError(ProviderError):
    """Network failure, HTTP error status, timeout or missing credentials."""

    category = "provider.unavailable"


class ProviderResponseError(ProviderError):
    """The backend replied, but not with the JSON shape we asked for."""

    category = "provider.response"
