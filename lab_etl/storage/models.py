from dataclasses import dataclass


@dataclass(frozen=True)
class StoragePaths:
    """Source, processed and logs prefixes of one entity."""

    source: str
    processed: str
    logs: str

    @classmethod
    def from_base(cls, base: str) -> "StoragePaths":
        """``orders/inbox`` -> ``orders/inbox/``, ``.../processed/``, ``.../logs/``."""
        base = base.rstrip("/")
        return cls(source=f"{base}/", processed=f"{base}/processed/", logs=f"{base}/logs/")

    def source_key(self, file_name: str) -> str:
        return f"{self.source}{file_name}"
