"""HockeyApp upload client."""

from hockeydeploy.hockeyapp.client import HockeyAppClient, parse_upload_response, upload_url
from hockeydeploy.hockeyapp.request import build_upload_request

__all__ = ["HockeyAppClient", "build_upload_request", "parse_upload_response", "upload_url"]
