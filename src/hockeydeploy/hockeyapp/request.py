"""Multipart upload request construction."""

import os
from contextlib import ExitStack

import requests

from hockeydeploy.errors import ConfigurationError, RequestConstructionError


def build_upload_request(
    url: str,
    fields: dict[str, str],
    files: dict[str, str],
) -> requests.PreparedRequest:
    """
    Build a multipart/form-data POST request.

    Args:
        url: Upload endpoint
        fields: Plain form fields
        files: Form part name -> local file path

    Returns:
        Prepared request with the full body and boundary content type, without
        any authentication header

    Raises:
        RequestConstructionError: A file could not be opened or read
        ConfigurationError: The endpoint URL is not usable
    """
    with ExitStack() as stack:
        try:
            parts = {
                name: (os.path.basename(path), stack.enter_context(open(path, "rb")))
                for name, path in files.items()
            }
        except OSError as e:
            raise RequestConstructionError(f"Failed to open upload file: {e}") from e

        # prepare() reads every file into the body
        try:
            return requests.Request("POST", url, data=fields, files=parts).prepare()
        except requests.RequestException as e:
            raise ConfigurationError(f"Invalid upload URL {url!r}: {e}") from e
        except OSError as e:
            raise RequestConstructionError(f"Failed to read upload file: {e}") from e
