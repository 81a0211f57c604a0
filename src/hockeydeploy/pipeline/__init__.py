"""Pipeline for resolving targets, uploading them, and exporting the URLs."""

from .deploy import run_deploy
from .reconcile import reconcile, resolve_targets, select_path_source

__all__ = ["reconcile", "resolve_targets", "run_deploy", "select_path_source"]
