"""Memory store exceptions."""


class PersistenceError(Exception):
    """Base exception for memory store errors."""


class DatabaseError(PersistenceError):
    """The SQLite database could not be opened or its tables created.

    Attributes:
        database_path: Path of the database that failed.
    """

    def __init__(self, database_path: str, reason: str) -> None:
        super().__init__(f"{database_path}: {reason}")
        self.database_path = database_path
