"""
Error kinds for the artifact lifecycle.

Stages never raise across artifact boundaries: collaborator exceptions are
caught at the stage boundary and turned into a failed ``StageResult`` that
carries one of these kinds. The exceptions below are what collaborators
(fetch provider, extractor) and the dependency-set resolver raise.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of a lifecycle failure or warning."""

    PRECONDITION_FAILED = "precondition_failed"
    FETCH_ERROR = "fetch_error"
    EXTRACT_ERROR = "extract_error"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    UNTRUSTED_ARTIFACT = "untrusted_artifact"
    CLASSIFICATION_AMBIGUOUS = "classification_ambiguous"
    PROTECTED_ARTIFACT = "protected_artifact"
    NOT_INSTALLED = "not_installed"
    UNKNOWN_FEATURE = "unknown_feature"
    BUILD_FAILED = "build_failed"
    INSTALL_FAILED = "install_failed"


class LifecycleError(Exception):
    """Base class for errors raised by lifecycle collaborators."""

    kind: ErrorKind = ErrorKind.INSTALL_FAILED

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class FetchError(LifecycleError):
    """The fetch provider could not retrieve an artifact."""

    kind = ErrorKind.FETCH_ERROR


class ExtractError(LifecycleError):
    """The extractor could not unpack an archive."""

    kind = ErrorKind.EXTRACT_ERROR


class UnknownFeatureError(LifecycleError):
    """A feature name is not in the self-update feature table."""

    kind = ErrorKind.UNKNOWN_FEATURE
