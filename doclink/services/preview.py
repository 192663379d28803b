from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from doclink.core.identity import replace_extension

LOGGER = logging.getLogger(__name__)

_PILLOW_FORMATS = {"webp": "WEBP", "jpg": "JPEG", "jpeg": "JPEG", "png": "PNG"}


@dataclass
class PreviewResult:
    ok: bool
    diagnostics: list[str] = field(default_factory=list)
    strategy: str | None = None


def preview_name_for(document_name: str, image_format: str = "webp") -> str:
    return replace_extension(document_name, image_format)


class PreviewRenderer:
    """Rasterizes one PDF page into a fixed-width preview image.

    ``pdftoppm`` is tried first under a timeout; pdfplumber's page renderer is
    the fallback. Failures never raise, they only add diagnostics.
    """

    def __init__(
        self,
        *,
        rasterizer_bin: str = "pdftoppm",
        timeout_seconds: float = 30,
        width: int = 600,
        height: int = 0,
        dpi: int = 160,
        image_format: str = "webp",
        quality: int = 75,
    ):
        self.rasterizer_bin = rasterizer_bin
        self.timeout_seconds = timeout_seconds
        self.width = width
        self.height = height
        self.dpi = dpi
        self.image_format = image_format.lower().lstrip(".")
        self.quality = quality

    @classmethod
    def from_settings(cls, cfg) -> "PreviewRenderer":
        return cls(
            rasterizer_bin=cfg.PREVIEW_RASTERIZER_BIN,
            timeout_seconds=cfg.PREVIEW_TIMEOUT_SECONDS,
            width=cfg.PREVIEW_WIDTH,
            height=cfg.PREVIEW_HEIGHT,
            dpi=cfg.PREVIEW_DPI,
            image_format=cfg.PREVIEW_FORMAT,
            quality=cfg.PREVIEW_QUALITY,
        )

    def render(self, document_path: str | Path, target_path: str | Path, page_index: int = 0) -> PreviewResult:
        diagnostics: list[str] = []
        document_path = Path(document_path)
        target_path = Path(target_path)

        for strategy, rasterize in (("pdftoppm", self._rasterize_with_pdftoppm), ("pdfplumber", self._rasterize_with_pdfplumber)):
            image = rasterize(document_path, page_index, diagnostics)
            if image is None:
                continue
            try:
                self._save(image, target_path)
            except (OSError, ValueError) as exc:
                diagnostics.append(f"{strategy}: cannot write preview: {exc}")
                continue
            return PreviewResult(ok=True, diagnostics=diagnostics, strategy=strategy)

        LOGGER.warning(
            "preview_failed",
            extra={"event": "preview_failed", "document": str(document_path), "diagnostics": diagnostics},
        )
        return PreviewResult(ok=False, diagnostics=diagnostics)

    def _rasterize_with_pdftoppm(self, document_path: Path, page_index: int, diagnostics: list[str]):
        page = page_index + 1
        with tempfile.TemporaryDirectory(prefix="doclink-preview-") as workdir:
            prefix = Path(workdir) / "page"
            command = [
                self.rasterizer_bin,
                "-f", str(page),
                "-l", str(page),
                "-singlefile",
                "-r", str(self.dpi),
                "-png",
                str(document_path),
                str(prefix),
            ]
            try:
                completed = subprocess.run(command, capture_output=True, timeout=self.timeout_seconds, check=False)
            except FileNotFoundError:
                diagnostics.append(f"pdftoppm: '{self.rasterizer_bin}' not available")
                return None
            except subprocess.TimeoutExpired:
                diagnostics.append(f"pdftoppm: timed out after {self.timeout_seconds}s")
                return None
            except OSError as exc:
                diagnostics.append(f"pdftoppm: cannot start: {exc}")
                return None

            if completed.returncode != 0:
                stderr = (completed.stderr or b"").decode("utf-8", errors="ignore").strip()
                diagnostics.append(f"pdftoppm: exit code {completed.returncode}: {stderr[:200]}")
                return None

            output = prefix.with_suffix(".png")
            if not output.is_file():
                diagnostics.append("pdftoppm: no output image produced")
                return None

            try:
                with Image.open(output) as produced:
                    produced.load()
                    return produced.copy()
            except (OSError, ValueError) as exc:
                diagnostics.append(f"pdftoppm: unreadable output image: {exc}")
                return None

    def _rasterize_with_pdfplumber(self, document_path: Path, page_index: int, diagnostics: list[str]):
        try:
            import pdfplumber
        except ImportError:
            diagnostics.append("pdfplumber: library not available")
            return None

        try:
            with pdfplumber.open(str(document_path)) as pdf:
                if page_index >= len(pdf.pages):
                    diagnostics.append(f"pdfplumber: page {page_index + 1} out of range ({len(pdf.pages)} pages)")
                    return None
                rendered = pdf.pages[page_index].to_image(resolution=self.dpi)
                return rendered.original.copy()
        except Exception as exc:  # noqa: BLE001
            diagnostics.append(f"pdfplumber: {exc}")
            return None

    def _save(self, image, target_path: Path) -> None:
        image = image.convert("RGB")
        width, height = image.size
        box_w = self.width or width
        box_h = self.height or max(1, int(height * (box_w / float(width))))
        image.thumbnail((box_w, box_h))
        target_path.parent.mkdir(parents=True, exist_ok=True)
        pil_format = _PILLOW_FORMATS.get(self.image_format, "WEBP")
        options = {"quality": self.quality} if pil_format in {"WEBP", "JPEG"} else {}
        image.save(target_path, format=pil_format, **options)
