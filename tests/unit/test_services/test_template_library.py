"""Unit tests for the template library."""
import cv2
import numpy as np
import pytest

from signmatch.config.settings import TemplateSpec
from signmatch.core.exceptions import ConfigError, TemplateLoadError
from signmatch.services.template_library import TemplateLibrary, decode_color_image


@pytest.fixture
def image_dir(tmp_path, sign_image):
    """Two template images written to disk."""
    cv2.imwrite(str(tmp_path / "a.png"), sign_image)
    cv2.imwrite(str(tmp_path / "b.png"), np.ascontiguousarray(sign_image[::-1, :]))
    return tmp_path


class TestTemplateLibrary:
    """Test suite for TemplateLibrary construction and lookup."""

    def test_from_specs_keeps_order(self, image_dir, edge_params):
        """Test templates are loaded in settings order."""
        specs = [
            TemplateSpec("second", "2", str(image_dir / "b.png")),
            TemplateSpec("first", "1", str(image_dir / "a.png")),
        ]

        library = TemplateLibrary.from_specs(specs, edge_params, 4, 4)

        assert library.names == ["second", "first"]
        assert len(library) == 2
        assert library.get("first").signal == "1"
        assert len(library.get("first").features) == 16

    def test_features_match_direct_extraction(self, image_dir, edge_params, sign_image):
        """Test a decoded image gives the same features as the in-memory one."""
        from_disk = TemplateLibrary.from_specs(
            [TemplateSpec("a", "A", str(image_dir / "a.png"))], edge_params, 4, 4)
        in_memory = TemplateLibrary.from_images([("a", "A", sign_image)], edge_params, 4, 4)

        np.testing.assert_array_equal(from_disk.get("a").features.values,
                                      in_memory.get("a").features.values)

    def test_missing_file_is_fatal(self, tmp_path, edge_params):
        """Test a missing image aborts loading."""
        specs = [TemplateSpec("ghost", "G", str(tmp_path / "ghost.png"))]

        with pytest.raises(TemplateLoadError, match="file not found"):
            TemplateLibrary.from_specs(specs, edge_params, 4, 4)

    def test_undecodable_file_is_fatal(self, tmp_path, edge_params):
        """Test a file that is not an image aborts loading."""
        path = tmp_path / "notes.png"
        path.write_text("not an image", encoding="utf-8")

        with pytest.raises(TemplateLoadError, match="could not load file"):
            TemplateLibrary.from_specs([TemplateSpec("n", "N", str(path))], edge_params, 4, 4)

    def test_custom_decoder(self, edge_params, sign_image):
        """Test an injected decoder replaces file access."""
        calls = []

        def decoder(path):
            calls.append(path)
            return sign_image

        library = TemplateLibrary.from_specs(
            [TemplateSpec("a", "A", "virtual.png")], edge_params, 4, 4, decoder=decoder)

        assert calls == ["virtual.png"]
        assert library.names == ["a"]

    def test_image_smaller_than_grid_is_fatal(self, edge_params):
        """Test an image too small for the grid cannot become a template."""
        tiny = np.zeros((3, 3, 3), dtype=np.uint8)

        with pytest.raises(TemplateLoadError, match="tiny"):
            TemplateLibrary.from_images([("tiny", "T", tiny)], edge_params, 8, 8)

    def test_duplicate_names_rejected(self, make_template):
        """Test two templates may not share a name."""
        with pytest.raises(ConfigError, match="duplicate"):
            TemplateLibrary([make_template("a", [0.1, 0.2]), make_template("a", [0.3, 0.1])])

    def test_empty_library(self):
        """Test an empty library is falsy and iterates nothing."""
        library = TemplateLibrary()

        assert not library
        assert list(library) == []
        assert library.get("a") is None

    def test_decode_color_image_missing(self, tmp_path):
        """Test decoding a missing file returns None."""
        assert decode_color_image(str(tmp_path / "none.png")) is None
