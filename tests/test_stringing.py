import numpy as np
import pytest
from PV_Shading_Model.stringing import *

ME3 = get_cell_preset("Maxeon Gen 3 (ME3)")

def test_cell_string_basics():
    string = CellString([4, 2, 7], has_bypass=[True, False, True], name="left wing")
    assert string.num_cells == 3
    assert string.cell_indices == [4, 2, 7]
    assert not string.uses_segments
    assert list(string.get_bypass_flags()) == [True, False, True]
    assert "left wing" in str(string)
    segmented = CellString(range(4), segments=(SegmentBypass(0, 3),))
    assert segmented.uses_segments
    assert segmented.cell_indices == [0, 1, 2, 3]

def test_simulate_mixed_strings():
    strings = [CellString([0, 1, 2], has_bypass=[True]*3),
               CellString([3, 4, 5], segments=[SegmentBypass(0, 2, ME3.bypass_v_drop)])]
    ratios = np.array([1.0, 0.0, 1.0, 1.0, 1.0, 1.0])
    result = simulate_strings(strings, ratios, ME3)
    assert len(result.string_results) == 2
    assert result.string_results[0].bypassed_cell_count == 1
    assert result.string_results[1].bypassed_cell_count == 0
    assert list(result.cell_bypassed) == [False, True, False, False, False, False]
    assert result.cell_voltage[1] == pytest.approx(-ME3.bypass_v_drop)
    assert result.total_power == pytest.approx(sum(r.power for r in result.string_results))
    assert result.string_results[0].power_ideal == pytest.approx(3*ME3.vmp*ME3.imp)
    assert result.shaded_count == 1
    assert result.shaded_percentage == pytest.approx(100.0/6)
    assert result.bypassed_count == 1
    # cell powers add back up to the string power
    assert np.sum(result.cell_power[:3]) == pytest.approx(result.string_results[0].power)

def test_string_order_uses_stable_indices():
    ratios = np.array([1.0, 0.4, 0.9, 0.0, 1.0])
    forward = simulate_strings([CellString([0, 1, 2, 3, 4], has_bypass=[True]*5)], ratios, ME3)
    backward = simulate_strings([CellString([4, 3, 2, 1, 0], has_bypass=[True]*5)], ratios, ME3)
    assert forward.total_power == pytest.approx(backward.total_power)
    assert np.array_equal(forward.cell_bypassed, backward.cell_bypassed)
    assert forward.cell_bypassed[3]

def test_unwired_cells_use_simple_power():
    ratios = np.array([1.0, 1.0, 0.5])
    result = simulate_strings([CellString([0, 1])], ratios, ME3)
    assert result.cell_power[2] == pytest.approx(0.5*1000.0*ME3.area*ME3.efficiency)
    assert result.total_power == pytest.approx(result.string_results[0].power + result.cell_power[2])
    assert list(get_unwired_cells([CellString([0, 1])], 3)) == [2]

def test_shaded_cells_explicit():
    ratios = np.array([1.0, 1.0, 1.0])
    shaded = np.array([False, False, True])
    result = simulate_strings([CellString([0, 1])], np.where(shaded, 0.0, ratios), ME3, is_shaded=shaded)
    assert result.cell_power[2] == 0.0
    assert result.shaded_count == 1

def test_empty_inputs():
    result = simulate_strings([CellString([])], np.zeros(0), ME3)
    assert result.total_power == 0.0
    assert result.shaded_percentage == 0.0
    assert result.string_results[0].power == 0.0
