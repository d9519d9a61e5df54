"""Exceptions raised by the property data cache."""


class InvalidAddressError(ValueError):
    """The supplied address is empty or whitespace-only."""


class StoreFailure(Exception):  # noqa: N818
    """The persistent store could not be read or written.

    The originating SQLAlchemy error is chained as ``__cause__``.
    """


class PropertyNotFoundError(LookupError):
    """No property record exists for the requested address."""

    def __init__(self, address_hash: str) -> None:
        self.address_hash = address_hash
        super().__init__(f"No property record for address hash {address_hash[:12]}")
