"""Reference image library: named edge-density templates built once at startup."""

import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..config.settings import TemplateSpec
from ..core.entities import EdgeParams, Template
from ..core.exceptions import ConfigError, FeatureExtractionError, TemplateLoadError
from ..core.features import extract_features

logger = logging.getLogger(__name__)

ImageDecoder = Callable[[str], Optional[np.ndarray]]


def decode_color_image(path: str) -> Optional[np.ndarray]:
    """Decode an image file as BGR, None if OpenCV cannot read it."""
    return cv2.imread(str(path), cv2.IMREAD_COLOR)


class TemplateLibrary:
    """Immutable, ordered collection of templates.

    Order follows the settings file and matters: the matcher keeps the first
    of several equally scoring templates.
    """

    def __init__(self, templates: Iterable[Template] = ()):
        templates = tuple(templates)
        seen = set()
        for t in templates:
            if t.name in seen:
                raise ConfigError(f"duplicate template name '{t.name}'")
            seen.add(t.name)
        self._templates: Tuple[Template, ...] = templates

    @classmethod
    def from_images(cls, named_images: Sequence[Tuple[str, str, np.ndarray]], params: EdgeParams,
                    vertical_segments: int, horizontal_segments: int) -> 'TemplateLibrary':
        """Build from already decoded ``(name, signal, image)`` triples."""
        templates: List[Template] = []
        for name, signal, image in named_images:
            try:
                features = extract_features(image, params, vertical_segments, horizontal_segments)
            except FeatureExtractionError as e:
                raise TemplateLoadError(f"template '{name}' is unusable: {e}") from e
            templates.append(Template(name=name, signal=signal, features=features))
        return cls(templates)

    @classmethod
    def from_specs(cls, specs: Sequence[TemplateSpec], params: EdgeParams,
                   vertical_segments: int, horizontal_segments: int,
                   decoder: ImageDecoder = decode_color_image) -> 'TemplateLibrary':
        """Decode every configured image and build the library.

        Raises:
            TemplateLoadError: If any image cannot be decoded. No partial
                library is ever returned.
        """
        logger.info("Loading templates:")
        decoded = []
        for spec in specs:
            logger.info(f"  {spec.name}: {spec.image_path}")
            image = decoder(spec.image_path)
            if image is None or getattr(image, "size", 0) == 0:
                if not Path(spec.image_path).exists():
                    raise TemplateLoadError(f"could not load file {spec.image_path} (file not found)")
                raise TemplateLoadError(f"could not load file {spec.image_path}")
            decoded.append((spec.name, spec.signal, image))

        library = cls.from_images(decoded, params, vertical_segments, horizontal_segments)
        logger.info(f"loaded {len(library)} templates.")
        return library

    @property
    def names(self) -> List[str]:
        return [t.name for t in self._templates]

    def get(self, name: str) -> Optional[Template]:
        for t in self._templates:
            if t.name == name:
                return t
        return None

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __bool__(self) -> bool:
        return bool(self._templates)

    def __repr__(self) -> str:
        return f"TemplateLibrary({self.names!r})"
