"""Shared types for the deploy pipeline."""

from dataclasses import dataclass, field

from hockeydeploy.models.upload import UploadResult

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass
class RunOutcome:
    """URLs collected across all uploads of a run, in encounter order."""

    config_urls: list[str] = field(default_factory=list)
    build_urls: list[str] = field(default_factory=list)
    public_urls: list[str] = field(default_factory=list)
    status: str = STATUS_SUCCESS
    error: str | None = None
    uploaded: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS

    def add(self, result: UploadResult):
        """Fold one upload result in, skipping empty and already-seen URLs."""
        for urls, url in (
            (self.config_urls, result.config_url),
            (self.build_urls, result.build_url),
            (self.public_urls, result.public_url),
        ):
            if url and url not in urls:
                urls.append(url)
        self.uploaded += 1

    def fail(self, error: Exception):
        self.status = STATUS_FAILED
        self.error = str(error)
