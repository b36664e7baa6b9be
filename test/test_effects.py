"""
Tests for the effect generator.
"""

import random
import unittest

import pytest

from prizm.matrix import effects
from prizm.matrix.frame import COLS, LED_COUNT, OFF, ROWS, get_pixel, hsv_to_hex, is_valid_color


@pytest.mark.parametrize("effect", effects.list_effects())
def test_every_effect_returns_full_frame(effect):
    frame = effects.generate(effect, None, random.Random(1))
    assert len(frame) == LED_COUNT
    assert all(is_valid_color(color) for color in frame)


def parameter_sets():
    """Each effect at its parameter bounds and at a fractional midpoint."""
    cases = []
    for effect in effects.list_effects():
        definition = effects.EFFECT_DEFINITIONS[effect]
        cases.append((effect, {key: param.min for key, param in definition.items()}))
        cases.append((effect, {key: param.max for key, param in definition.items()}))
        cases.append((effect, {key: (param.min + param.max) / 2 + 0.25 for key, param in definition.items()}))
    return cases


@pytest.mark.parametrize("effect,params", parameter_sets())
@pytest.mark.parametrize("seed", [0, 1, 7, 123, 9999])
def test_effect_full_frame_across_parameter_range(effect, params, seed):
    frame = effects.generate(effect, params, random.Random(seed))
    assert len(frame) == LED_COUNT
    assert all(is_valid_color(color) for color in frame)


@pytest.mark.parametrize("effect", effects.list_effects())
def test_seeded_effects_are_reproducible(effect):
    first = effects.generate(effect, None, random.Random(42))
    second = effects.generate(effect, None, random.Random(42))
    assert first == second


def test_unknown_effect_gives_blank_frame():
    frame = effects.generate('plasma')
    assert frame == [OFF] * LED_COUNT


def test_rainbow_columns():
    frame = effects.generate('rainbow', {'shift': 0, 'saturation': 100, 'brightness': 100})
    # Every row of a column holds the same colour
    for col in range(COLS):
        column = {get_pixel(frame, row, col) for row in range(ROWS)}
        assert len(column) == 1
    assert get_pixel(frame, 0, 0) == '#ff0000'
    assert get_pixel(frame, 5, 7) == hsv_to_hex(7 / COLS * 360, 100, 100)


def test_rainbow_shift():
    frame = effects.generate('rainbow', {'shift': 120, 'saturation': 100, 'brightness': 100})
    assert get_pixel(frame, 0, 0) == '#00ff00'


def test_missing_params_use_defaults():
    explicit = effects.generate('rainbow', effects.default_params('rainbow'))
    implicit = effects.generate('rainbow', {})
    assert explicit == implicit


def test_snow_colours():
    frame = effects.generate('snow', {'count': 5}, random.Random(3))
    assert set(frame) <= {effects.SNOW_BACKGROUND, effects.SNOW_FLAKE}
    flakes = frame.count(effects.SNOW_FLAKE)
    assert 1 <= flakes <= 5


def test_twinkle_density_bounds_lit_pixels():
    frame = effects.generate('twinkle', {'density': 10}, random.Random(5))
    lit = [color for color in frame if color != OFF]
    assert 1 <= len(lit) <= 10


def test_meteor_head_starts_on_top_row():
    frame = effects.generate('meteor', {'length': 3, 'hue': 0, 'trails': 1}, random.Random(9))
    top = [get_pixel(frame, 0, col) for col in range(COLS)]
    assert sum(1 for color in top if color != OFF) == 1
    assert hsv_to_hex(0, 80, 100) in top


class TestEffectParameterStore(unittest.TestCase):
    """Test per-effect parameter storage."""

    def setUp(self):
        self.store = effects.EffectParameterStore()

    def test_defaults_on_first_access(self):
        self.assertEqual(self.store.get('fire'), {'intensity': 70, 'flicker': 4})

    def test_set_clamps(self):
        self.assertEqual(self.store.set('fire', 'intensity', 500), 100)
        self.assertEqual(self.store.set('fire', 'intensity', 0), 20)
        self.assertEqual(self.store.get('fire')['intensity'], 20)

    def test_unknown_parameter(self):
        with self.assertRaises(KeyError):
            self.store.set('fire', 'speed', 10)
        with self.assertRaises(KeyError):
            self.store.set('plasma', 'speed', 10)

    def test_reset(self):
        self.store.set('snow', 'count', 50)
        self.assertEqual(self.store.reset('snow'), {'count': 24})

    def test_effects_are_independent(self):
        self.store.set('twinkle', 'hue', 10)
        self.assertEqual(self.store.get('meteor')['hue'], 180)
        self.assertEqual(self.store.to_dict()['twinkle']['hue'], 10)

    def test_definitions_to_dict(self):
        param = effects.EFFECT_DEFINITIONS['rainbow']['saturation']
        self.assertEqual(param.to_dict(), {'label': 'Saturation', 'min': 40, 'max': 100, 'value': 90})


if __name__ == '__main__':
    unittest.main()
