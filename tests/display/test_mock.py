from __future__ import annotations

import pytest
from PIL import Image

from event_digest.display import DEFAULT_RESOLUTION, MockDisplayDriver


class TestMockDisplayDriver:
    @staticmethod
    def test_mock_records_frames_and_saves(tmp_path) -> None:
        driver = MockDisplayDriver(output_dir=tmp_path)
        driver.initialize()

        frame = Image.new("L", driver.resolution, 0)
        driver.display_image(frame)

        history = driver.history
        assert len(history) == 1
        assert history[-1].tobytes() == frame.tobytes()

        saved_files = list(tmp_path.glob("digest-frame-*.png"))
        assert len(saved_files) == 1

    @staticmethod
    def test_mock_requires_initialization() -> None:
        driver = MockDisplayDriver()

        with pytest.raises(RuntimeError):
            driver.display_image(Image.new("L", driver.resolution, 0))

        driver.initialize()
        driver.display_image(Image.new("L", driver.resolution, 0))

    @staticmethod
    def test_mock_validates_resolution() -> None:
        driver = MockDisplayDriver()
        driver.initialize()

        with pytest.raises(ValueError):
            driver.display_image(Image.new("L", (100, 100), 0))

    @staticmethod
    def test_sleep_requires_reinitialization() -> None:
        driver = MockDisplayDriver(keep_history=False)
        driver.initialize()
        driver.sleep()

        with pytest.raises(RuntimeError):
            driver.display_image(Image.new("L", DEFAULT_RESOLUTION, 255))
        assert driver.history == []
