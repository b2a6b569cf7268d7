"""Resize work units that the harness benchmarks against each other.

Each strategy decodes the input image, resizes it per ``ResizeOptions`` and
encodes the result, differing only in how the input reaches the decoder and
where the output goes:

- ``buffer``: whole file read into memory, decoded from a byte buffer
- ``stream``: file fed chunk by chunk into an incremental parser
- ``path``: decoder opens the file itself, result written to disk
- ``sequential-stream``: single pass reduced-scale decode from the path

All of them raise whatever Pillow raises (``OSError``,
``PIL.UnidentifiedImageError``); the executor turns that into a failed
iteration.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Type
import io
import logging
import os

from PIL import Image, ImageFile, ImageOps

from config import FIT_MODES
from errors import ConfigurationError

logger = logging.getLogger(__name__)

RESAMPLE = Image.Resampling.LANCZOS
_JPEG_MODES = ('RGB', 'L', 'CMYK')


@dataclass(frozen=True)
class ResizeOptions:
    width: int
    height: Optional[int] = None
    fit: str = 'inside'
    allow_enlargement: bool = False

    def __post_init__(self):
        if self.fit not in FIT_MODES:
            raise ConfigurationError(f"fit must be one of {', '.join(FIT_MODES)}, got {self.fit!r}")

    @classmethod
    def from_config(cls, config) -> 'ResizeOptions':
        return cls(width=config.target_width, height=config.target_height,
                   fit=config.fit_mode, allow_enlargement=config.allow_enlargement)


def target_box(source_size: Tuple[int, int], options: ResizeOptions) -> Tuple[int, int]:
    """Box the image is resized into; height follows the aspect ratio when unset."""
    sw, sh = source_size
    if options.height is not None:
        return options.width, options.height
    return options.width, max(1, round(sh * options.width / sw))


def resize_image(image: Image.Image, options: ResizeOptions) -> Image.Image:
    """Resize per the fit mode. Returns ``image`` itself when enlargement is
    disallowed and it already fits inside the target box."""
    sw, sh = image.size
    box = target_box(image.size, options)
    if not options.allow_enlargement and sw <= box[0] and sh <= box[1]:
        return image
    if options.height is None or options.fit == 'fill':
        return image.resize(box, RESAMPLE)
    if options.fit == 'inside':
        return ImageOps.contain(image, box, method=RESAMPLE)
    if options.fit == 'contain':
        return ImageOps.pad(image, box, method=RESAMPLE)
    return ImageOps.fit(image, box, method=RESAMPLE)


def _prepare_for_format(image: Image.Image, fmt: Optional[str]) -> Image.Image:
    if fmt == 'JPEG' and image.mode not in _JPEG_MODES:
        return image.convert('RGB')
    return image


def encode_image(image: Image.Image, fmt: Optional[str]) -> bytes:
    fmt = fmt or 'PNG'
    buf = io.BytesIO()
    _prepare_for_format(image, fmt).save(buf, format=fmt)
    return buf.getvalue()


class ResizeStrategy(ABC):
    """One way of performing the resize.

    ``execute`` returns the size in bytes of the encoded output.
    """

    name: str = ''
    description: str = ''
    writes_output = False

    @abstractmethod
    def execute(self, input_path: str, output_path: Optional[str], options: ResizeOptions) -> int:
        raise NotImplementedError

    def clear_cache(self) -> None:
        """Release Pillow's cached image memory blocks before an iteration."""
        Image.core.clear_cache()

    def __repr__(self):
        return f'{type(self).__name__}(name={self.name!r})'


class BufferStrategy(ResizeStrategy):
    name = 'buffer'
    description = 'read the whole file into memory, resize, encode to memory'

    def execute(self, input_path, output_path, options):
        with open(input_path, 'rb') as f:
            data = f.read()
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            return len(encode_image(resize_image(img, options), fmt))


class StreamStrategy(ResizeStrategy):
    name = 'stream'
    description = 'feed file chunks into an incremental parser, resize, encode to memory'

    def __init__(self, chunk_size: int = 64 * 1024):
        self.chunk_size = chunk_size

    def execute(self, input_path, output_path, options):
        parser = ImageFile.Parser()
        with open(input_path, 'rb') as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b''):
                parser.feed(chunk)
        img = parser.close()
        try:
            fmt = img.format
            return len(encode_image(resize_image(img, options), fmt))
        finally:
            img.close()


class PathStrategy(ResizeStrategy):
    name = 'path'
    description = 'decode straight from the file path, write the result to disk'
    writes_output = True

    def execute(self, input_path, output_path, options):
        if not output_path:
            raise ValueError('path strategy needs an output path')
        with Image.open(input_path) as img:
            fmt = Image.registered_extensions().get(os.path.splitext(output_path)[1].lower(), img.format)
            _prepare_for_format(resize_image(img, options), fmt).save(output_path, format=fmt)
        return os.path.getsize(output_path)


class SequentialStreamStrategy(ResizeStrategy):
    name = 'sequential-stream'
    description = 'single pass reduced-scale decode from the file path, encode to memory'

    def execute(self, input_path, output_path, options):
        with Image.open(input_path) as img:
            fmt = img.format
            # only JPEG honours draft; other formats decode at full size
            img.draft(img.mode, target_box(img.size, options))
            return len(encode_image(resize_image(img, options), fmt))


STRATEGIES: Dict[str, Type[ResizeStrategy]] = {
    cls.name: cls for cls in (BufferStrategy, StreamStrategy, PathStrategy, SequentialStreamStrategy)
}


def get_strategy(name: str) -> ResizeStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown strategy {name!r}; choose one of: {', '.join(STRATEGIES)}"
        ) from None
