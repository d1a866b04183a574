class Error(Exception):
    # Every failure of a deployment is terminal. Callers catch this base class at the process boundary.
    context = 'deploy'

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f'{self.context} error: {self.message}'


class IoError(Error):
    context = 'io'


class CodecError(Error):
    context = 'codec'


class InsufficientFundsError(Error):
    context = 'capacity'


class NetworkError(Error):
    context = 'network'


class SigningError(Error):
    context = 'signing'
