class ServiceError(Exception):
    status_code = 500


class MissingParameterError(ServiceError):
    status_code = 400


class InvalidURLError(ServiceError):
    status_code = 400


class FetchFailedError(ServiceError):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class EmptyContentError(ServiceError):
    status_code = 422


class InvalidFeedError(ServiceError):
    status_code = 400


class UpstreamFormatError(ServiceError):
    pass


class NetworkTimeoutError(ServiceError):
    status_code = 504

    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"Network timeout after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds
