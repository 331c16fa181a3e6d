import numpy as np
from PV_Shading_Model.utilities import *

class IVTrace:
    # IV_I is non-increasing (Isc end first), IV_V is non-decreasing; same index = same operating point
    def __init__(self, IV_I=None, IV_V=None, Voc=0.0, Isc=0.0, Vmp=0.0, Imp=0.0):
        if IV_I is None:
            IV_I = np.zeros(0)
        if IV_V is None:
            IV_V = np.zeros(0)
        IV_I = np.ascontiguousarray(IV_I, dtype=np.float64)
        IV_V = np.ascontiguousarray(IV_V, dtype=np.float64)
        if IV_I.ndim != 1 or IV_V.ndim != 1 or IV_I.shape != IV_V.shape:
            raise ValueError(f"IV_I and IV_V must be 1D arrays of equal length, got shapes {IV_I.shape} and {IV_V.shape}")
        self.IV_I = IV_I
        self.IV_V = IV_V
        self.Voc = float(Voc)
        self.Isc = float(Isc)
        self.Vmp = float(Vmp)
        self.Imp = float(Imp)

    @classmethod
    def dark(cls):
        return cls(IV_I=np.zeros(2), IV_V=np.zeros(2))

    @property
    def n_samples(self):
        return self.IV_I.size

    def __len__(self):
        return self.n_samples

    @property
    def IV_table(self):
        # fresh 2xN array, row 0 voltage, row 1 current
        return np.stack([self.IV_V, self.IV_I], axis=0)

    def get_Pmax(self):
        return self.Vmp*self.Imp

    def get_FF(self):
        if self.Isc <= 0 or self.Voc <= 0:
            return 0.0
        return self.get_Pmax()/(self.Isc*self.Voc)

    def interp_V(self, current):
        return interp_V(self, current)

    def interp_I(self, voltage):
        return interp_I(self, voltage)

    def __str__(self):
        return (f"IV Trace: {self.n_samples} samples, Voc = {self.Voc:.4f} V, Isc = {self.Isc:.4f} A, "
                f"Vmp = {self.Vmp:.4f} V, Imp = {self.Imp:.4f} A")

def interp_V(trace, current):
    """Voltage at a given current (scalar or array), clamped to the trace ends."""
    return interp_(current, trace.IV_I, trace.IV_V)

def interp_I(trace, voltage):
    """Current at a given voltage (scalar or array), clamped to the trace ends."""
    return interp_(voltage, trace.IV_V, trace.IV_I)

def get_Pmax(trace):
    return trace.get_Pmax()

def get_FF(trace):
    return trace.get_FF()
