"""
Asset Catalog

The fixed set of assets this service knows about: the downloadable pack
and the preview samples. The sample list doubles as the preview allow-list.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

DEFAULT_PACKAGE_KEY = "tesla_sounds.zip"
DEFAULT_SAMPLES_PREFIX = "samples/"


@dataclass(frozen=True)
class PreviewSample:
    """A previewable sample with its display labels."""

    filename: str
    label_en: str
    label_zh: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "filename": self.filename,
            "labelEn": self.label_en,
            "labelZh": self.label_zh,
        }


DEFAULT_SAMPLES: Tuple[PreviewSample, ...] = (
    PreviewSample("labubu1.mp3", "Labubu Chirp", "Labubu 锁车音 · 版本 1"),
    PreviewSample("labubu2.mp3", "Labubu Pulse", "Labubu 锁车音 · 版本 2"),
    PreviewSample("labubu3.mp3", "Labubu Wave", "Labubu 锁车音 · 版本 3"),
    PreviewSample("windows.mp3", "Windows Chime", "Windows 系统提示音"),
    PreviewSample("winopen.mp3", "Windows Start", "Windows 开机音"),
    PreviewSample("jiming.mp3", "Morning Rooster", "鸡鸣提示音"),
)


class AssetCatalog:
    """
    Maps catalog names to logical storage keys.

    Logical keys are tier-independent: the package is stored under
    ``package_key`` and each sample under ``samples_prefix + filename``.
    """

    def __init__(
        self,
        samples: Tuple[PreviewSample, ...] = DEFAULT_SAMPLES,
        package_key: str = DEFAULT_PACKAGE_KEY,
        samples_prefix: str = DEFAULT_SAMPLES_PREFIX,
    ):
        self._samples = {sample.filename: sample for sample in samples}
        self.package_key = package_key
        self.samples_prefix = samples_prefix

    @property
    def sample_names(self) -> List[str]:
        return list(self._samples)

    @property
    def package_filename(self) -> str:
        return self.package_key.rsplit("/", 1)[-1]

    def is_sample(self, name: str) -> bool:
        return name in self._samples

    def list_samples(self) -> List[PreviewSample]:
        return list(self._samples.values())

    def sample_key(self, name: str) -> str:
        """Logical storage key of a sample."""
        return f"{self.samples_prefix}{name}"
