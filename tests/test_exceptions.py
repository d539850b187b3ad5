"""Tests for the exception hierarchy."""

import pytest

from app_keystore.exceptions import (
    BackendError,
    DocumentDecodeError,
    DocumentNotFoundError,
    InvalidArgumentError,
    KeystoreError,
    NotFoundError,
    TokenProviderError,
    UnallowedAppIdError,
    UnauthorizedError,
    UnimplementedError,
)


@pytest.mark.parametrize(
    "error, kind",
    [
        (DocumentNotFoundError("apps/1/app.json"), NotFoundError),
        (UnallowedAppIdError(0), UnauthorizedError),
        (DocumentDecodeError("bad json"), BackendError),
        (TokenProviderError("authority down"), BackendError),
    ],
)
def test_specific_errors_belong_to_their_kind(error: KeystoreError, kind: type[KeystoreError]):
    assert isinstance(error, kind)
    assert isinstance(error, KeystoreError)


def test_top_level_kinds_are_distinct():
    kinds = [InvalidArgumentError, NotFoundError, UnauthorizedError, BackendError, UnimplementedError]
    for kind in kinds:
        others = [k for k in kinds if k is not kind]
        assert not issubclass(kind, tuple(others))


def test_error_attributes():
    assert DocumentNotFoundError("x.json").name == "x.json"
    assert str(UnallowedAppIdError(0)) == "app id 0 is not allowed"
