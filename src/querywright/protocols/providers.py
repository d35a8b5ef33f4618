"""Provider protocol definitions.

The quoting engine does not talk to the database itself; it asks an
``EscapeProvider`` to escape string content. The MySQL driver is the
production provider, tests can pass any object with an ``escape_string``
method.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EscapeProvider(Protocol):
    """Protocol for objects able to escape string literal content.

    The returned text must be safe to place between double quotes in a
    MySQL statement. Implementations backed by a live connection may connect
    on first use.
    """

    def escape_string(self, value: str) -> str:
        """Escape ``value`` for inclusion in a quoted literal.

        Args:
            value: Raw string content

        Returns:
            Escaped content without surrounding quotes

        Raises:
            ConnectionFailureError: If the provider needs a connection and
                cannot establish one
        """
        ...
