"""Failure taxonomy for a regression report run. Every one of these aborts the run."""

from __future__ import annotations


class RegressionReportError(Exception):
    pass


class MalformedVersion(RegressionReportError, ValueError):
    """A version string is not three dot-separated non-negative integers."""


class OutOfRangeVersion(RegressionReportError, ValueError):
    """A sample lies outside the configured [earliest, latest] analysis window."""


class RepositoryUnavailable(RegressionReportError):
    """The regression database is missing or could not be queried."""


class MetadataFetchFailed(RegressionReportError):
    """The megabase index could not be downloaded, parsed, or lacks a sampled map."""


class EmptyCohort(RegressionReportError):
    """A checkpoint or one of its versions has no contributing maps."""
