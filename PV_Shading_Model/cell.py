import numpy as np
from PV_Shading_Model.iv_trace import *

DARK_IRRADIANCE_RATIO = solver_env_variables["DARK_IRRADIANCE_RATIO"]
LOG_IRRADIANCE_RATIO = solver_env_variables["LOG_IRRADIANCE_RATIO"]
MAX_EXPONENT = solver_env_variables["MAX_EXPONENT"]
STC_IRRADIANCE = 1000.0 # W/m2

@dataclass(frozen=True)
class CellElectricalParams:
    voc: float              # open circuit voltage at STC (V)
    isc: float              # short circuit current at STC (A)
    n_ideal: float          # diode ideality factor
    series_r: float         # series resistance (ohm)
    bypass_v_drop: float    # bypass diode forward voltage (V)

@dataclass(frozen=True)
class CellPreset:
    name: str
    width: float            # m
    height: float           # m
    efficiency: float       # 0-1
    voc: float
    isc: float
    vmp: float              # voltage at max power (V)
    imp: float              # current at max power (A)
    n_ideal: float
    series_r: float
    bypass_v_drop: float

    @property
    def area(self):
        return self.width*self.height

    @property
    def electrical(self):
        return CellElectricalParams(voc=self.voc, isc=self.isc, n_ideal=self.n_ideal,
                                    series_r=self.series_r, bypass_v_drop=self.bypass_v_drop)

    def make_trace(self, irradiance_ratio, num_points=None):
        return make_cell_trace(self.voc, self.isc, self.n_ideal, self.series_r,
                               irradiance_ratio, num_points=num_points)

    @classmethod
    def from_dict(cls, name, values):
        return cls(name=name, **values)

ParameterSet(name="cell_presets",filename=PARAM_DIR / "cell_presets.json")
cell_presets = ParameterSet.get_set("cell_presets")
if not isinstance(cell_presets(), dict) or len(cell_presets()) == 0:
    cell_presets.data = {"Maxeon Gen 3 (ME3)": {"width": 0.125, "height": 0.125, "efficiency": 0.227,
                                                "voc": 0.686, "isc": 6.27, "vmp": 0.58, "imp": 6.01,
                                                "n_ideal": 1.26, "series_r": 0.003, "bypass_v_drop": 0.35}}
CELL_PRESETS = [CellPreset.from_dict(name, values) for name, values in cell_presets().items()]

def get_cell_preset(which=0):
    if isinstance(which, str):
        for preset in CELL_PRESETS:
            if preset.name == which:
                return preset
        raise KeyError(f"Unknown cell preset '{which}', choose from {[p.name for p in CELL_PRESETS]}")
    return CELL_PRESETS[which]

def scale_voc(voc, n_ideal, irradiance_ratio):
    # Voc drops logarithmically with irradiance, left alone very close to dark
    if irradiance_ratio > LOG_IRRADIANCE_RATIO:
        return max(voc + n_ideal*VT_at_25C*np.log(irradiance_ratio), 0.0)
    return voc

# single diode approximation, always at 25C
def make_cell_trace(voc, isc, n_ideal, series_r, irradiance_ratio, num_points=None):
    if irradiance_ratio <= DARK_IRRADIANCE_RATIO:
        return IVTrace.dark()
    if num_points is None:
        num_points = solver_env_variables["NUM_CELL_SAMPLES"]
    num_points = max(int(num_points), 2)

    Iph = isc*irradiance_ratio # photo-generated current
    nVT = max(n_ideal, 1e-6)*VT_at_25C
    scaled_voc = scale_voc(voc, n_ideal, irradiance_ratio)

    # I = Iph * (1 - exp((V - Voc)/(n*VT))), swept on a voltage grid
    V = np.linspace(0.0, scaled_voc, num_points)
    exponent = np.minimum((V - scaled_voc)/nVT, MAX_EXPONENT)
    I = Iph*(1.0 - np.exp(exponent))

    # first-order series resistance correction
    if series_r > 0:
        V = np.where(I > 0, np.maximum(V - I*series_r, 0.0), V)
    I = np.clip(I, 0.0, Iph)

    power = V*I
    index = int(np.argmax(power))
    return IVTrace(IV_I=I, IV_V=V, Voc=scaled_voc, Isc=Iph, Vmp=V[index], Imp=I[index])

SIMPLE_KNEE_VT = VT_at_25C*1.3*10.0

def make_simple_cell_trace(voc, isc, vmp, imp, irradiance_ratio, num_points=50):
    # coarse exponential knee through (0, Isc) and (Voc, 0), Vmp/Imp only rescaled
    scaled_isc = isc*irradiance_ratio
    scaled_imp = imp*irradiance_ratio
    if irradiance_ratio > LOG_IRRADIANCE_RATIO:
        scaled_voc = max(voc + VT_at_25C*np.log(irradiance_ratio), 0.0)
        scaled_vmp = max(vmp + VT_at_25C*np.log(irradiance_ratio), 0.0)
        if scaled_vmp > scaled_voc:
            scaled_vmp = scaled_voc*0.85
    else:
        scaled_voc = 0.0
        scaled_vmp = 0.0

    num_points = max(int(num_points), 2)
    V = np.linspace(0.0, scaled_voc, num_points)
    if scaled_voc > 0 and scaled_isc > 0:
        I = scaled_isc*(1.0 - np.exp((V - scaled_voc)/SIMPLE_KNEE_VT))
        I = np.clip(I, 0.0, scaled_isc)
    else:
        I = np.zeros(num_points)
    return IVTrace(IV_I=I, IV_V=V, Voc=scaled_voc, Isc=scaled_isc, Vmp=scaled_vmp, Imp=scaled_imp)

def calc_cell_current(isc_stc, irradiance, cos_angle):
    if cos_angle <= 0 or irradiance <= 0:
        return 0.0
    return isc_stc*(irradiance/STC_IRRADIANCE)*cos_angle

def calc_cell_voltage(voc, isc, n_ideal, operating_current, irradiance_ratio):
    if irradiance_ratio <= DARK_IRRADIANCE_RATIO or isc <= 0:
        return 0.0
    Iph = isc*irradiance_ratio
    # cell cannot supply this current without going into reverse bias
    if operating_current >= Iph:
        return -np.inf
    ratio = 1.0 - operating_current/Iph
    scaled_voc = scale_voc(voc, n_ideal, irradiance_ratio)
    voltage = scaled_voc + n_ideal*VT_at_25C*np.log(ratio)
    return max(float(voltage), 0.0)
