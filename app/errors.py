class UpstreamError(Exception):
    """A PokeAPI call could not produce a usable result."""

    def __init__(self, endpoint: str, message: str) -> None:
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.message = message


class UpstreamSchemaError(UpstreamError):
    """The upstream response is missing a field the endpoint schema requires."""
