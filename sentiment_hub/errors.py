"""Exception types raised by the sentiment_hub pipeline."""


class SentimentHubError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class ConfigError(SentimentHubError):
    pass


class CSVParseError(SentimentHubError):
    pass


class ClassifierError(SentimentHubError):
    """The external sentiment endpoint failed or returned something unusable."""


class MissingColumnsError(SentimentHubError):
    pass
