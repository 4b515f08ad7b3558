# datasources/exceptions.py

class DataSourceError(Exception):
    pass


class DataSourceUnavailable(DataSourceError):
    pass


class QueryTimeout(DataSourceError):
    pass


class InvalidQuery(DataSourceError):
    pass


class ServiceNotFound(DataSourceError):
    def __init__(self, service: str):
        super().__init__(f"service {service!r} not found")
        self.service = service


class AnalyzerNotConfigured(DataSourceError):
    pass
