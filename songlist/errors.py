class SonglistError(Exception):
    """Base class for errors the service layer hands to the HTTP layer."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SonglistError):
    status_code = 400


class ConflictError(SonglistError):
    status_code = 400


class AuthError(SonglistError):
    status_code = 401


class NotFoundError(SonglistError):
    status_code = 404


class NotInstalledError(SonglistError):
    status_code = 503


class StoreError(SonglistError):
    status_code = 500


def from_pydantic(err) -> ValidationError:
    """Flatten a pydantic ValidationError into one readable message."""
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ())) or "payload"
        parts.append(f"{loc}: {e.get('msg')}")
    return ValidationError("; ".join(parts))
