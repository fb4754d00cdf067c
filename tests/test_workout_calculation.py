import pytest

from rpt_trainer.workout_calculation import (
    calculate_rpt_weights,
    drop_percentage_for,
    format_duration,
    format_rpt_example,
    format_volume,
    format_weight,
    round_to_nearest_increment,
)


@pytest.mark.parametrize("first_set_weight", [0, 45.5, 100, 225, 317.5])
@pytest.mark.parametrize(
    "drops",
    [
        [0.0],
        [0.0, 0.10, 0.15],
        [0.0, 0.05, 0.10, 0.20, 0.30],
        [0.0, 1.0],
    ],
)
def test_calculate_rpt_weights_applies_each_drop(first_set_weight, drops):
    weights = calculate_rpt_weights(first_set_weight, drops)

    assert len(weights) == len(drops)
    for weight, drop in zip(weights, drops):
        assert weight == pytest.approx(first_set_weight * (1 - drop), abs=1e-6)


def test_calculate_rpt_weights_empty_table():
    assert calculate_rpt_weights(200, []) == []


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 0),
        (177, 175),
        (178, 180),
        (182.5, 185),
        (187.4, 185),
        (230.625, 230),
        (189.11, 190),
        (-7.5, -10),
    ],
)
def test_round_to_nearest_increment(value, expected):
    assert round_to_nearest_increment(value) == expected


def test_round_to_nearest_increment_is_idempotent():
    for value in [0, 2.4, 2.5, 97.3, 182.5, 1001.9, -12.5]:
        once = round_to_nearest_increment(value)
        assert round_to_nearest_increment(once) == once


def test_round_to_nearest_increment_other_increment():
    assert round_to_nearest_increment(101, 10) == 100
    assert round_to_nearest_increment(105, 10) == 110


def test_round_to_nearest_increment_rejects_zero_increment():
    with pytest.raises(ValueError):
        round_to_nearest_increment(100, 0)


def test_format_rpt_example_skips_first_set():
    assert format_rpt_example(100, [0.0, 0.10, 0.15]) == "90 → 85 lb"
    assert format_rpt_example(200, [0.0, 0.10, 0.20], unit="kg") == "180 → 160 kg"


def test_format_rpt_example_single_drop_has_no_arrow():
    assert format_rpt_example(100, [0.0]) == "lb"


def test_drop_percentage_for_uses_fallback_table():
    assert drop_percentage_for(1, [0.0, 0.12]) == 0.12
    assert drop_percentage_for(2, [0.0, 0.12]) == 0.15
    assert drop_percentage_for(3, None) == 0.20
    assert drop_percentage_for(4, [0.0]) == 0.10
    assert drop_percentage_for(7, [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7]) == 0.7


def test_format_weight():
    assert format_weight(225) == "225 lb"
    assert format_weight(135.0) == "135.0 lb"
    assert format_weight(135.5, unit="kg") == "135.5 kg"
    assert format_weight(135.0, use_unit=False) == "135.0"


def test_format_volume():
    assert format_volume(2500) == "2.5k lb"
    assert format_volume(750) == "750.0 lb"
    assert format_volume(1000) == "1000.0 lb"
    assert format_volume(0) == "0.0 lb"


def test_format_duration():
    assert format_duration(0) == "0:00"
    assert format_duration(125) == "2:05"
    assert format_duration(2700) == "45:00"
