"""Exception hierarchy for the CloudWatch exporter."""


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigurationError(ExporterError):
    """Raised when a decoded configuration fails validation.

    Fatal at startup; on reload the previous configuration stays active.
    """


class DiscoveryError(ExporterError):
    """Raised when listing metrics from the provider fails."""


class FetchError(ExporterError):
    """Raised when fetching statistics from the provider fails."""


class EnrichmentError(ExporterError):
    """Raised when the metadata index cannot answer a tag lookup.

    Always recovered by the tag enricher; never aborts a scrape.
    """
