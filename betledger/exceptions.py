class LedgerError(Exception):
    """Base exception for ledger operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BetNotFoundError(LedgerError):
    """No bet with the requested id."""

    def __init__(self, bet_id: str):
        super().__init__(f"Bet not found: {bet_id}")
        self.bet_id = bet_id


class InvalidImportError(LedgerError):
    """Import payload is not a JSON array of valid bet records."""

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []


class LedgerStorageError(LedgerError):
    """Reading or writing the ledger file failed."""

    pass
