import numpy as np
import pytest
from PV_Shading_Model.iv_trace import *

def make_line_trace():
    # I = 2 - 4V on [0, 0.5]
    V = np.linspace(0, 0.5, 6)
    I = 2.0 - 4.0*V
    return IVTrace(IV_I=I, IV_V=V, Voc=0.5, Isc=2.0, Vmp=0.25, Imp=1.0)

def test_mismatched_arrays_rejected():
    with pytest.raises(ValueError):
        IVTrace(IV_I=np.zeros(3), IV_V=np.zeros(4))
    with pytest.raises(ValueError):
        IVTrace(IV_I=np.zeros((2, 2)), IV_V=np.zeros((2, 2)))

def test_dark_trace():
    trace = IVTrace.dark()
    assert trace.n_samples == 2
    assert len(trace) == 2
    assert trace.Isc == 0 and trace.Voc == 0
    assert np.all(trace.IV_I == 0) and np.all(trace.IV_V == 0)
    assert trace.get_Pmax() == 0
    assert trace.get_FF() == 0

def test_interp_descending_current():
    trace = make_line_trace()
    assert interp_V(trace, 1.0) == pytest.approx(0.25)
    assert trace.interp_V(2.0) == pytest.approx(0.0)
    assert interp_I(trace, 0.125) == pytest.approx(1.5)
    assert isinstance(interp_V(trace, 1.0), float)

def test_interp_clamps_outside_range():
    trace = make_line_trace()
    assert interp_V(trace, 5.0) == pytest.approx(0.0)
    assert interp_V(trace, -1.0) == pytest.approx(0.5)
    assert interp_I(trace, 2.0) == pytest.approx(0.0)
    assert interp_I(trace, -1.0) == pytest.approx(2.0)

def test_interp_array_query():
    trace = make_line_trace()
    V = interp_V(trace, np.array([0.0, 1.0, 2.0]))
    assert np.allclose(V, [0.5, 0.25, 0.0])

def test_interp_empty_and_single_sample():
    empty = IVTrace()
    assert interp_V(empty, 1.0) == 0.0
    single = IVTrace(IV_I=[1.0], IV_V=[0.3])
    assert interp_V(single, 5.0) == pytest.approx(0.3)
    assert np.allclose(interp_V(single, np.array([0.0, 2.0])), 0.3)

def test_pmax_and_ff():
    trace = make_line_trace()
    assert get_Pmax(trace) == pytest.approx(0.25)
    assert get_FF(trace) == pytest.approx(0.25)

def test_iv_table_is_a_copy():
    trace = make_line_trace()
    table = trace.IV_table
    assert table.shape == (2, 6)
    table[0, 0] = 99.0
    assert trace.IV_V[0] == 0.0
