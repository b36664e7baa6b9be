"""
Tests for frame addressing and colour helpers.
"""

import unittest

from prizm.matrix.frame import (
    COLS, LED_COUNT, OFF, ROWS, clone_frame, create_blank, get_pixel, hex_to_rgb,
    hsv_to_hex, in_bounds, index_to_xy, is_off, is_valid_color, normalize_color,
    rgb_to_hex, set_pixel, validate_frame, xy_to_index
)


class TestAddressing(unittest.TestCase):
    """Test serpentine addressing."""

    def test_even_row_runs_left_to_right(self):
        self.assertEqual(xy_to_index(0, 0), 0)
        self.assertEqual(xy_to_index(0, COLS - 1), COLS - 1)
        self.assertEqual(xy_to_index(2, 3), 2 * COLS + 3)

    def test_odd_row_is_reversed(self):
        # Row 1, column 0 is the last LED of the second run
        self.assertEqual(xy_to_index(1, 0), 1 * 21 + 20)
        self.assertEqual(xy_to_index(1, 0), 41)
        self.assertEqual(xy_to_index(1, COLS - 1), COLS)

    def test_addressing_is_a_bijection(self):
        indices = set()
        for row in range(ROWS):
            for col in range(COLS):
                index = xy_to_index(row, col)
                self.assertTrue(0 <= index < LED_COUNT)
                self.assertEqual(index_to_xy(index), (row, col))
                indices.add(index)
        self.assertEqual(len(indices), LED_COUNT)

    def test_in_bounds(self):
        self.assertTrue(in_bounds(0, 0))
        self.assertTrue(in_bounds(ROWS - 1, COLS - 1))
        self.assertFalse(in_bounds(-1, 0))
        self.assertFalse(in_bounds(0, COLS))
        self.assertFalse(in_bounds(ROWS, 0))


class TestFrameStore(unittest.TestCase):
    """Test frame creation and pixel access."""

    def test_create_blank(self):
        frame = create_blank()
        self.assertEqual(len(frame), LED_COUNT)
        self.assertTrue(all(color == OFF for color in frame))

    def test_create_blank_with_fill(self):
        frame = create_blank('#FFF')
        self.assertTrue(all(color == '#ffffff' for color in frame))

    def test_set_then_get(self):
        frame = create_blank()
        set_pixel(frame, 0, 0, '#ff0000')
        self.assertEqual(get_pixel(frame, 0, 0), '#ff0000')
        self.assertEqual(frame[0], '#ff0000')

    def test_set_on_odd_row_touches_reversed_index(self):
        frame = create_blank()
        set_pixel(frame, 1, 0, '#00ff00')
        self.assertEqual(frame[41], '#00ff00')
        self.assertEqual(frame.count('#00ff00'), 1)

    def test_clone_is_independent(self):
        frame = create_blank()
        copy = clone_frame(frame)
        set_pixel(copy, 3, 3, '#123456')
        self.assertEqual(get_pixel(frame, 3, 3), OFF)
        self.assertIsNot(copy, frame)


class TestColors(unittest.TestCase):
    """Test colour conversion helpers."""

    def test_hex_to_rgb(self):
        self.assertEqual(hex_to_rgb('#ff8000'), (255, 128, 0))
        self.assertEqual(hex_to_rgb('#f80'), (255, 136, 0))
        self.assertEqual(hex_to_rgb('nonsense'), (0, 0, 0))

    def test_rgb_to_hex_clamps(self):
        self.assertEqual(rgb_to_hex(255, 0, 16), '#ff0010')
        self.assertEqual(rgb_to_hex(300, -5, 0), '#ff0000')

    def test_hsv_to_hex(self):
        self.assertEqual(hsv_to_hex(0, 100, 100), '#ff0000')
        self.assertEqual(hsv_to_hex(120, 100, 100), '#00ff00')
        self.assertEqual(hsv_to_hex(240, 100, 100), '#0000ff')
        self.assertEqual(hsv_to_hex(0, 0, 0), '#000000')

    def test_hsv_hue_wraps(self):
        self.assertEqual(hsv_to_hex(360, 100, 100), hsv_to_hex(0, 100, 100))
        self.assertEqual(hsv_to_hex(480, 100, 100), hsv_to_hex(120, 100, 100))
        self.assertEqual(hsv_to_hex(-120, 100, 100), hsv_to_hex(240, 100, 100))

    def test_normalize_color(self):
        self.assertEqual(normalize_color('#ABCDEF'), '#abcdef')
        self.assertEqual(normalize_color('#abc'), '#aabbcc')
        self.assertEqual(normalize_color((1, 2, 3)), '#010203')
        with self.assertRaises(ValueError):
            normalize_color('red')
        with self.assertRaises(ValueError):
            normalize_color((256, 0, 0))

    def test_is_valid_color(self):
        self.assertTrue(is_valid_color('#000'))
        self.assertTrue(is_valid_color('#a1b2c3'))
        self.assertFalse(is_valid_color('a1b2c3'))
        self.assertFalse(is_valid_color('#12345'))
        self.assertFalse(is_valid_color(None))

    def test_is_off(self):
        self.assertTrue(is_off('#000000'))
        self.assertTrue(is_off('#000'))
        self.assertFalse(is_off('#010000'))


class TestValidateFrame(unittest.TestCase):
    """Test validation of frames from outside sources."""

    def test_valid_frame_is_normalised(self):
        frame = ['#FFF'] * LED_COUNT
        result = validate_frame(frame)
        self.assertEqual(result, ['#ffffff'] * LED_COUNT)

    def test_wrong_length(self):
        with self.assertRaises(ValueError):
            validate_frame([OFF] * (LED_COUNT - 1))

    def test_bad_colour(self):
        frame = [OFF] * LED_COUNT
        frame[7] = 'blue'
        with self.assertRaises(ValueError):
            validate_frame(frame)

    def test_not_a_sequence(self):
        with self.assertRaises(ValueError):
            validate_frame('#000000' * LED_COUNT)


if __name__ == '__main__':
    unittest.main()
