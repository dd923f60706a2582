class ValuationError(Exception):
    pass


class IncompleteDataError(ValuationError):
    def __init__(self, message="Incomplete financial data"):
        super().__init__(message)


class InvalidInputError(ValuationError, ValueError):
    pass
