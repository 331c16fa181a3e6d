import numpy as np
from PV_Shading_Model.string_model import *

@dataclass
class CellString:
    # positions in cell_indices are string order; indices are stable ids into the cell arrays
    cell_indices: list
    has_bypass: Any = None
    segments: list | None = None
    name: str = ""

    def __post_init__(self):
        self.cell_indices = [int(i) for i in self.cell_indices]
        if self.segments is not None:
            self.segments = list(self.segments)

    @property
    def num_cells(self):
        return len(self.cell_indices)

    @property
    def uses_segments(self):
        return self.segments is not None

    def get_bypass_flags(self):
        return get_bypass_flags(self.has_bypass, self.num_cells)

    def make_cell_traces(self, preset, irradiance_ratios, num_points=None):
        return [preset.make_trace(irradiance_ratios[i], num_points=num_points) for i in self.cell_indices]

    def simulate(self, cell_traces, bypass_v_drop, num_points=None):
        if self.uses_segments:
            result, _ = calc_string_IV_with_segments(cell_traces, self.segments, num_points=num_points)
            states = get_segment_cell_operating_states(cell_traces, self.segments, result)
        else:
            has_bypass = self.get_bypass_flags()
            result = calc_string_IV(cell_traces, bypass_v_drop, has_bypass=has_bypass, num_points=num_points)
            states = get_cell_operating_states(cell_traces, result, bypass_v_drop, has_bypass=has_bypass)
        return result, states

    def __str__(self):
        label = self.name if self.name else "CellString"
        if self.uses_segments:
            return f"{label}: {self.num_cells} cells, {len(self.segments)} bypass segments"
        return f"{label}: {self.num_cells} cells, {int(np.sum(self.get_bypass_flags()))} with bypass diodes"

@dataclass
class StaticSimResult:
    string_results: list = field(default_factory=list)
    cell_power: np.ndarray = field(default_factory=lambda: np.zeros(0))
    cell_voltage: np.ndarray = field(default_factory=lambda: np.zeros(0))
    cell_bypassed: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    cell_shaded: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    total_power: float = 0.0
    shaded_count: int = 0
    shaded_percentage: float = 0.0

    @property
    def bypassed_count(self):
        return int(sum(result.bypassed_cell_count for result in self.string_results))

    def __str__(self):
        return (f"Simulation: {self.total_power:.1f}W ({self.shaded_percentage:.1f}% shaded, "
                f"{self.bypassed_count} bypassed)")

def get_unwired_cells(strings, num_cells):
    wired = np.zeros(num_cells, dtype=bool)
    for string in strings:
        wired[string.cell_indices] = True
    return np.flatnonzero(~wired)

def simulate_strings(strings, irradiance_ratios, preset, is_shaded=None, num_points=None):
    irradiance_ratios = np.clip(np.asarray(irradiance_ratios, dtype=np.float64), 0.0, None)
    num_cells = irradiance_ratios.size
    if is_shaded is None:
        is_shaded = irradiance_ratios <= 0
    is_shaded = np.asarray(is_shaded, dtype=bool)

    result = StaticSimResult(cell_power=np.zeros(num_cells), cell_voltage=np.zeros(num_cells),
                             cell_bypassed=np.zeros(num_cells, dtype=bool), cell_shaded=is_shaded.copy())
    for string in strings:
        if string.num_cells == 0:
            result.string_results.append(StringSimResult.zero())
            continue
        cell_traces = string.make_cell_traces(preset, irradiance_ratios, num_points=num_points)
        string_result, states = string.simulate(cell_traces, preset.bypass_v_drop, num_points=num_points)
        string_result.power_ideal = string.num_cells*preset.vmp*preset.imp
        for index, state in zip(string.cell_indices, states):
            result.cell_power[index] = state.power
            result.cell_voltage[index] = state.voltage
            result.cell_bypassed[index] = state.is_bypassed
        result.string_results.append(string_result)
        result.total_power += string_result.power

    # cells outside every string deliver power on their own
    for index in get_unwired_cells(strings, num_cells):
        if not is_shaded[index]:
            power = irradiance_ratios[index]*STC_IRRADIANCE*preset.area*preset.efficiency
            result.cell_power[index] = power
            result.total_power += power

    result.shaded_count = int(np.count_nonzero(is_shaded))
    result.shaded_percentage = 100.0*result.shaded_count/num_cells if num_cells > 0 else 0.0
    return result
